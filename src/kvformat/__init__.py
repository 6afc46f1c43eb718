"""
kvformat: readers and writers for keyed-value configuration text.

Three dialects share one tokenizer and tree model:

* ``Dialect.MAP``: ``"key" { "key" "value" }`` documents with a single
  root key, ``//`` comments and ``#"path"`` file inclusion.
* ``Dialect.BRACE``: ``key = value`` pairs, bare words, ``[ ]`` arrays and
  ``<!-- -->`` comment markers.
* ``Dialect.TYPED``: ``"key" "typename" payload`` entries.

The module-level helpers build a throwaway ``Codec`` per call; keep a
``Codec`` around to reuse its configuration and encode buffer.
"""

from typing import IO
from typing import Any

from ._classify import Dialect
from ._profiling import clear_hot_path_stats
from ._profiling import get_hot_path_stats
from .codec import Codec
from .codec import Document
from .codec import StrPath
from .config import EncodeConfig
from .config import IncludeDepth
from .config import InvalidNumbers
from .config import LoadMode
from .config import ParseConfig
from .errors import DepthExceededError
from .errors import EncodeTypeError
from .errors import EncodingError
from .errors import KVDecodeError
from .errors import KVEncodeError
from .errors import KVError
from .errors import KVFileError
from .errors import SparseArrayError
from .errors import StructuralError
from .errors import TokenError
from .tree import KVArray
from .tree import KVObject
from .tree import Shape
from .tree import TreeValue

__version__ = "0.1.0"


def loads(
    s: Document,
    dialect: Dialect | str = Dialect.BRACE,
    *,
    mode: LoadMode = LoadMode.MAP,
    origin: StrPath | None = None,
    **kwargs: Any,
) -> TreeValue:
    """
    Parses one document into tree values.

    ``kwargs`` are ``ParseConfig`` fields. ``origin`` names the file the
    text came from so Map-dialect inclusions can be resolved.
    """
    codec = Codec(
        dialect, ParseConfig(**kwargs), EncodeConfig(keep_buffer=False)
    )
    return codec.decode(s, mode=mode, origin=origin)


def load(
    fp: IO[str] | IO[bytes],
    dialect: Dialect | str = Dialect.BRACE,
    **kwargs: Any,
) -> TreeValue:
    """
    Parses a document from a file-like object.
    """
    if not hasattr(fp, "read"):
        raise TypeError("fp must have a read() method")

    return loads(fp.read(), dialect, **kwargs)


def load_file(
    path: StrPath, *, mode: LoadMode = LoadMode.MAP, **kwargs: Any
) -> KVObject:
    """
    Reads a Map-dialect file, resolving its inclusions.

    The result is keyed by the file's base name.
    """
    codec = Codec(
        Dialect.MAP, ParseConfig(**kwargs), EncodeConfig(keep_buffer=False)
    )
    return codec.decode_file(path, mode=mode)


def dumps(
    obj: Any,
    dialect: Dialect | str = Dialect.BRACE,
    *,
    array: bool = False,
    **kwargs: Any,
) -> str:
    """
    Serializes tree values to document text.

    ``kwargs`` are ``EncodeConfig`` fields. ``array=True`` writes a value
    produced by ``decode_array``.
    """
    kwargs.setdefault("keep_buffer", False)
    codec = Codec(dialect, encode=EncodeConfig(**kwargs))
    data = codec.encode_array(obj) if array else codec.encode(obj)
    return data.decode("utf-8")


def dump(
    obj: Any,
    fp: IO[str],
    dialect: Dialect | str = Dialect.BRACE,
    **kwargs: Any,
) -> None:
    """
    Serializes tree values to a text file-like object.
    """
    if not hasattr(fp, "write"):
        raise TypeError("fp must have a write() method")

    fp.write(dumps(obj, dialect, **kwargs))


__all__ = [
    "Codec",
    "DepthExceededError",
    "Dialect",
    "EncodeConfig",
    "EncodeTypeError",
    "EncodingError",
    "IncludeDepth",
    "InvalidNumbers",
    "KVArray",
    "KVDecodeError",
    "KVEncodeError",
    "KVError",
    "KVFileError",
    "KVObject",
    "LoadMode",
    "ParseConfig",
    "Shape",
    "SparseArrayError",
    "StructuralError",
    "TokenError",
    "TreeValue",
    "__version__",
    "clear_hot_path_stats",
    "dump",
    "dumps",
    "get_hot_path_stats",
    "load",
    "load_file",
    "loads",
]
