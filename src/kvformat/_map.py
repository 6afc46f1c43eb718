"""
Map dialect: quoted keys, whitespace-separated values, ``#"path"`` includes.

A document holds exactly one root key whose value is usually an object::

    #base "common.txt"
    "root"
    {
        "key"   "value"
        "count" 3
    }
"""

from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any

from ._classify import Dialect
from ._classify import TokenType
from ._encoder import BaseEncoder
from ._encoder import Container
from ._encoder import Entry
from ._encoder import type_name
from ._parser import BaseParser
from ._parser import Frame
from ._profiling import ProfileContext
from .config import LoadMode
from .errors import EncodeTypeError
from .lexer import Token
from .tree import KVObject
from .tree import Shape
from .tree import TreeValue

_REF = ord("#")


class MapParser(BaseParser):
    """
    Parses one Map-dialect document.

    Inclusion directives must precede the root key; ``read_directives``
    returns them for the caller to resolve before ``parse_document``.
    """

    dialect = Dialect.MAP

    def read_directives(self) -> list[Token]:
        directives = []
        while True:
            self.lexer.skip_whitespace()
            if self.lexer.peek() != _REF:
                return directives
            directives.append(self.lexer.scan_directive())

    def parse_document(self) -> KVObject:
        """Parses the root pair; empty input gives an empty object."""
        root = KVObject()
        token = self.advance()
        if token.type is TokenType.END:
            return root
        if token.type is not TokenType.STRING:
            raise self.unexpected("object key string", token)
        root.append(token.value, self.parse_value(self.advance()))
        self.expect_end()
        return root

    def attach(self, frame: Frame, value: TreeValue) -> None:
        if frame.key is None:
            # Array mode: keys and values are plain elements
            frame.container.append(value)
        else:
            frame.container.append(frame.key, value)
            frame.key = None

    def parse_value(self, token: Token) -> TreeValue:
        if token.type is not TokenType.OBJ_BEGIN:
            return self.scalar(token)

        with ProfileContext("parse_object"):
            self.open(token)
            while True:
                frame = self.stack[-1]
                token = self.advance()
                if token.type is TokenType.OBJ_END and frame.key is None:
                    result = self.close()
                    if result is not None:
                        return result
                elif frame.key is None and self.mode is LoadMode.MAP:
                    if token.type is not TokenType.STRING:
                        raise self.unexpected(
                            "object key string or '}'", token
                        )
                    frame.key = token.value
                elif token.type is TokenType.OBJ_BEGIN:
                    self.open(token)
                else:
                    self.attach(frame, self.scalar(token))


def _is_container(value: Any) -> bool:
    return isinstance(value, KVObject | list | tuple | Mapping)


class MapEncoder(BaseEncoder):
    """
    Writes a single-root Map document.

    Arrays have no syntax of their own in this dialect, so array-shaped
    values must be flattened ``[key, value, ...]`` sequences and are
    written as objects.
    """

    def newline(self, depth: int) -> str:
        return "\n" + "\t" * depth if self.config.newlines else " "

    def separator(self, value: Any) -> str:
        if _is_container(value):
            return ""
        return "\t" if self.config.newlines else " "

    def encode(self, value: Any) -> None:
        classified = self.classify(value)
        if classified is None:
            raise EncodeTypeError(
                f"Cannot serialise {type_name(value)}: "
                "Map documents need an object root"
            )
        shape, items = classified
        if shape is Shape.ARRAY:
            items = self.array_pairs(items)
        if not items:
            return
        if len(items) > 1:
            raise EncodeTypeError(
                "Cannot serialise object: "
                "Map documents hold exactly one root key"
            )

        key, root = items[0]
        self.write_value(root, 0, self.string(key) + self.separator(root))
        if self.config.newlines:
            self.buffer.write("\n")

    def array_pairs(self, items: list[Any]) -> list[tuple[str, Any]]:
        """Pairs up array elements; this dialect has no array syntax."""
        if len(items) % 2:
            raise EncodeTypeError(
                "Cannot serialise array: "
                "Map arrays are written as key/value pairs"
            )
        return self.flattened_pairs(items)

    def container(
        self, shape: Shape, items: list[Any], depth: int
    ) -> Container:
        pairs = self.array_pairs(items) if shape is Shape.ARRAY else items
        return (
            self.newline(depth - 1) + "{",
            self._entries(pairs, depth),
            self.newline(depth - 1) + "}",
        )

    def _entries(self, pairs: list[Any], depth: int) -> Iterator[Entry]:
        for key, value in pairs:
            yield (
                self.newline(depth) + self.string(key) + self.separator(value),
                value,
                "",
            )
