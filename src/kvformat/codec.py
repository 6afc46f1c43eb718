"""
Configuration-owning codec, one per dialect.

A ``Codec`` holds an immutable ``ParseConfig`` and ``EncodeConfig`` and,
while ``keep_buffer`` is on, one persistent ``EncodeBuffer`` reused by every
encode. At most one encode may use that buffer at a time; it is guarded by
a lock, and toggling it while an encode is in flight is an error.
"""

import dataclasses
import logging
import threading
from os import PathLike
from pathlib import Path
from typing import Any

from ._brace import BraceEncoder
from ._brace import BraceParser
from ._classify import Dialect
from ._encoder import EncodeBuffer
from ._include import IncludeResolver
from ._map import MapEncoder
from ._profiling import ProfileContext
from ._typed import TypedEncoder
from ._typed import TypedParser
from .config import EncodeConfig
from .config import LoadMode
from .config import ParseConfig
from .tree import KVObject
from .tree import TreeValue

logger = logging.getLogger(__name__)

type Document = str | bytes | bytearray | memoryview
type StrPath = str | PathLike[str]

# Option name accepted by ``Codec.configure`` -> (config, field)
_OPTIONS: dict[str, tuple[str, str]] = {
    "decode_max_depth": ("parse", "max_depth"),
    "decode_invalid_numbers": ("parse", "invalid_numbers"),
    "include_depth": ("parse", "include_depth"),
    "max_include_depth": ("parse", "max_include_depth"),
    "encode_max_depth": ("encode", "max_depth"),
    "encode_number_precision": ("encode", "number_precision"),
    "encode_invalid_numbers": ("encode", "invalid_numbers"),
    "encode_sparse_convert": ("encode", "sparse_convert"),
    "encode_sparse_ratio": ("encode", "sparse_ratio"),
    "encode_sparse_safe": ("encode", "sparse_safe"),
    "encode_keep_buffer": ("encode", "keep_buffer"),
    "newlines": ("encode", "newlines"),
    "quote_keys": ("encode", "quote_keys"),
}


def as_bytes(data: Document) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, bytes | bytearray | memoryview):
        return bytes(data)
    raise TypeError(
        f"the document must be str or bytes, not {type(data).__name__}"
    )


class Codec:
    """
    Decodes and encodes one dialect with a fixed configuration.

    ``decode`` and ``encode`` are safe to call from several threads; the
    persistent buffer serialises encodes while it is enabled.
    """

    def __init__(
        self,
        dialect: Dialect | str = Dialect.BRACE,
        parse: ParseConfig | None = None,
        encode: EncodeConfig | None = None,
    ) -> None:
        self.dialect = Dialect(dialect)
        self.parse_config = parse if parse is not None else ParseConfig()
        self.encode_config = encode if encode is not None else EncodeConfig()
        self._lock = threading.Lock()
        self._buffer: EncodeBuffer | None = None
        if self.encode_config.keep_buffer:
            self._buffer = EncodeBuffer()

    def __repr__(self) -> str:
        return f"Codec({self.dialect}, keep_buffer={self.keep_buffer})"

    @property
    def keep_buffer(self) -> bool:
        return self._buffer is not None

    def configure(self, **options: Any) -> tuple[ParseConfig, EncodeConfig]:
        """
        Replaces configuration values between calls.

        Option names follow the ``decode_``/``encode_`` prefixes of
        ``_OPTIONS``. Returns the new ``(ParseConfig, EncodeConfig)``;
        invalid values raise before anything changes.
        """
        changes: dict[str, dict[str, Any]] = {"parse": {}, "encode": {}}
        for name, value in options.items():
            if name not in _OPTIONS:
                raise TypeError(f"unknown codec option {name!r}")
            target, field = _OPTIONS[name]
            changes[target][field] = value

        parse = dataclasses.replace(self.parse_config, **changes["parse"])
        encode = dataclasses.replace(self.encode_config, **changes["encode"])

        if not self._lock.acquire(blocking=False):
            raise RuntimeError(
                "cannot reconfigure while an encode is running"
            )
        try:
            self.parse_config = parse
            self.encode_config = encode
            if encode.keep_buffer and self._buffer is None:
                self._buffer = EncodeBuffer()
                logger.debug("Allocated persistent encode buffer")
            elif not encode.keep_buffer and self._buffer is not None:
                self._buffer = None
                logger.debug("Released persistent encode buffer")
        finally:
            self._lock.release()

        logger.debug("Reconfigured %s codec: %s", self.dialect.value, options)
        return parse, encode

    def decode(
        self,
        data: Document,
        *,
        mode: LoadMode = LoadMode.MAP,
        origin: StrPath | None = None,
    ) -> TreeValue:
        """
        Decodes one document.

        ``origin`` is the file the document came from; Map-dialect
        inclusion directives are resolved against its directory.
        """
        raw = as_bytes(data)
        config = self.parse_config
        with ProfileContext("decode", len(raw)):
            if self.dialect is Dialect.MAP:
                resolver = IncludeResolver(config, mode)
                path = None
                if origin is not None:
                    path = Path(origin)
                    resolver.chain.append(path.resolve())
                return resolver.parse(raw, path, 0)
            if self.dialect is Dialect.BRACE:
                parser = BraceParser(raw, config, mode)
                if mode is LoadMode.ARRAY:
                    return parser.parse_array_document()
                return parser.parse_document()
            if mode is LoadMode.ARRAY:
                raise ValueError("the typed dialect has no array load mode")
            return TypedParser(raw, config).parse_document()

    def decode_array(
        self, data: Document, *, origin: StrPath | None = None
    ) -> TreeValue:
        """Decodes with every object flattened into a ``KVArray``."""
        return self.decode(data, mode=LoadMode.ARRAY, origin=origin)

    def decode_file(
        self, path: StrPath, *, mode: LoadMode = LoadMode.MAP
    ) -> KVObject:
        """
        Reads a Map-dialect file and its inclusions.

        The result has one key, the file's base name, holding the spliced
        inclusions followed by the file's own root pair.
        """
        if self.dialect is not Dialect.MAP:
            raise ValueError(
                "decode_file is only available for the map dialect"
            )
        resolver = IncludeResolver(self.parse_config, mode)
        with ProfileContext("decode_file"):
            return resolver.load_file(Path(path))

    def encode(self, value: Any) -> bytes:
        """Encodes ``value`` and returns the document bytes."""
        return self._encode(value, array=False)

    def encode_array(self, value: Any) -> bytes:
        """
        Encodes a value produced by ``decode_array``.

        For the Brace dialect a single-element root is written on its own
        and a longer one as flattened ``key=value`` lines.
        """
        return self._encode(value, array=True)

    def _encode(self, value: Any, array: bool) -> bytes:
        with ProfileContext("encode"):
            if self._buffer is None:
                buffer = EncodeBuffer()
                self._run_encoder(value, array, buffer)
                return buffer.getvalue()

            with self._lock:
                buffer = self._buffer
                if buffer is None:
                    # Released by configure before the lock was taken
                    buffer = EncodeBuffer()
                buffer.reset()
                try:
                    self._run_encoder(value, array, buffer)
                except BaseException:
                    buffer.reset()
                    raise
                return buffer.getvalue()

    def _run_encoder(
        self, value: Any, array: bool, buffer: EncodeBuffer
    ) -> None:
        config = self.encode_config
        if self.dialect is Dialect.MAP:
            MapEncoder(config, buffer).encode(value)
        elif self.dialect is Dialect.BRACE:
            BraceEncoder(config, buffer).encode(value, array)
        else:
            TypedEncoder(config, buffer).encode(value)


__all__ = ["Codec", "Document"]
