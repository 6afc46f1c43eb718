"""
Map-dialect file inclusion.

Each ``#"path"`` directive names a document relative to the including
file's directory. The included document is parsed recursively, wrapped in a
one-entry object keyed by its base file name, and spliced ahead of the
including document's own root pair.
"""

import logging
from pathlib import Path

from ._map import MapParser
from .config import IncludeDepth
from .config import LoadMode
from .config import ParseConfig
from .errors import DepthExceededError
from .errors import KVFileError
from .tree import KVObject

logger = logging.getLogger(__name__)


def base_name(path: str | Path) -> str:
    """Strips the directory part; both separators count."""
    return str(path).replace("\\", "/").rsplit("/", 1)[-1]


def read_document(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise KVFileError(f"Cannot read {path}: {e.strerror or e}") from e


class IncludeResolver:
    """
    Resolves inclusion directives for one top-level decode call.

    ``chain`` holds the files currently being parsed so cycles fail instead
    of recursing forever. With ``IncludeDepth.SHARED`` every inclusion level
    costs one unit of ``max_depth``; with ``FRESH`` each file starts from
    zero and only ``max_include_depth`` bounds the chain.
    """

    def __init__(self, config: ParseConfig, mode: LoadMode) -> None:
        self.config = config
        self.mode = mode
        self.chain: list[Path] = []

    def child_depth(self, depth: int) -> int:
        if self.config.include_depth is IncludeDepth.FRESH:
            return 0
        return depth + 1

    def load_file(self, path: Path, depth: int = 0) -> KVObject:
        """Parses ``path`` and returns ``{base_name: body}``."""
        resolved = path.resolve()
        if resolved in self.chain:
            raise KVFileError(f"Circular inclusion of {path}")
        level = len(self.chain)
        if level > self.config.max_include_depth:
            raise DepthExceededError(
                f"Too many nested inclusions ({level}) at {path}", level
            )

        logger.debug(
            "Including %s (resolved %s, level %d)", path, resolved, level
        )
        data = read_document(path)
        self.chain.append(resolved)
        try:
            body = self.parse(data, path, depth)
        finally:
            self.chain.pop()
        return KVObject([(base_name(path), body)])

    def parse(self, data: bytes, origin: Path | None, depth: int) -> KVObject:
        """
        Parses one document, resolving its directives against ``origin``.

        Included wrappers come first, then the document's own root pair.
        """
        parser = MapParser(data, self.config, self.mode, depth)
        directives = parser.read_directives()
        body = KVObject()
        for directive in directives:
            if origin is None:
                raise KVFileError(
                    f"Inclusion of {directive.value!r} needs an origin file"
                )
            target = origin.parent / str(directive.value).replace("\\", "/")
            included = self.load_file(target, self.child_depth(depth))
            body.extend(included.items())
        body.extend(parser.parse_document().items())
        return body
