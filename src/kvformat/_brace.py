"""
Brace dialect: bare or quoted keys, optional ``=``/``:`` separators.

::

    name = "example"
    size 3
    tags = [ red, green, ]
    nested { path = materials\\dev\\grid }

Two load modes share one grammar. Map mode builds ``KVObject`` trees;
array mode flattens objects into ``KVArray(shape=Shape.OBJECT)`` sequences
of alternating keys and values.
"""

import re
from collections.abc import Iterator
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
from .errors import EncodeTypeError
from .errors import StructuralError
from .lexer import Token
from .tree import KVArray
from .tree import KVObject
from .tree import Shape

_CONTAINERS = (TokenType.OBJ_BEGIN, TokenType.ARR_BEGIN)
_BARE_KEY = re.compile(r"[A-Za-z0-9\-][A-Za-z0-9_.+\-/]*")


class BraceParser(BaseParser):
    """
    Parses one Brace-dialect document.

    An object whose first token is another ``{`` is a Typed-dialect
    document pasted inside a Brace one: the inner braces are skipped. Only
    one such wrapper is understood; a deeper one is a structural error.
    """

    dialect = Dialect.BRACE

    def parse_document(self) -> KVObject | KVArray:
        """Root of ``key value`` pairs, or a single braced object."""
        token = self.advance(key=True)
        if token.type is TokenType.END:
            return self.new_object()
        if token.type is TokenType.OBJ_BEGIN:
            self.open(token)
            result = self.run()
            self.expect_end()
            return result
        if token.type is not TokenType.STRING:
            raise self.unexpected("object key string or '{'", token)

        self.push_back(token)
        self.stack.append(
            Frame(self.new_object(), TokenType.END, counted=False)
        )
        return self.run()

    def parse_array_document(self) -> KVArray:
        """
        Array-mode root: a braced container becomes the single element,
        a lone scalar likewise, anything else is a flattened pair sequence.
        """
        root = KVArray(shape=Shape.OBJECT)
        token = self.advance(key=True)
        if token.type is TokenType.END:
            return root
        if token.type in _CONTAINERS:
            self.open(token)
            root.append(self.run())
            self.expect_end()
            return root

        first = self.scalar(token)
        token = self.advance()
        if token.type is TokenType.END:
            root.append(first)
            return root

        frame = Frame(root, TokenType.END, counted=False)
        self.stack.append(frame)
        if token.type is TokenType.COLON:
            token = self.advance()
        self.put(frame, first, token)
        frame.expect_value = False
        return self.run()

    def run(self) -> KVObject | KVArray:
        with ProfileContext("parse_containers"):
            while True:
                frame = self.stack[-1]
                if frame.is_array:
                    result = self.array_step(frame)
                else:
                    result = self.object_step(frame)
                if result is not None:
                    return result

    def put(self, frame: Frame, key: Any, token: Token) -> None:
        """Stores the value that ``token`` begins under ``key``."""
        frame.key = key
        if token.type in _CONTAINERS:
            self.open(token)
        else:
            self.attach(frame, self.scalar(token))

    def object_step(self, frame: Frame) -> KVObject | KVArray | None:
        token = self.advance(key=True)

        if (
            token.type is TokenType.OBJ_BEGIN
            and frame.first
            and frame.closer is TokenType.OBJ_END
        ):
            if frame.wrapped:
                raise StructuralError(
                    "Nested document deeper than one level is not supported",
                    self.lexer.data,
                    token.start,
                )
            frame.wrapped = True
            return None
        frame.first = False

        if token.type is frame.closer:
            if frame.wrapped:
                closing = self.advance(key=True)
                if closing.type is not TokenType.OBJ_END:
                    raise self.unexpected(
                        "'}' closing the nested document", closing
                    )
            return self.close()

        if token.type is TokenType.COMMA and not frame.expect_value:
            frame.expect_value = True
            return None
        if token.type is not TokenType.STRING:
            raise self.unexpected("object key string", token)

        value = self.advance()
        if value.type is TokenType.COLON:
            value = self.advance()
        self.put(frame, token.value, value)
        frame.expect_value = False
        return None

    def array_step(self, frame: Frame) -> KVObject | KVArray | None:
        token = self.advance()
        if token.type is TokenType.ARR_END:
            return self.close()
        if frame.expect_value:
            self.put(frame, None, token)
            frame.expect_value = False
            return None
        if token.type is not TokenType.COMMA:
            raise self.unexpected("',' or ']'", token)
        frame.expect_value = True
        return None


class BraceEncoder(BaseEncoder):
    """
    Writes ``key=value`` lines with tab-indented containers.

    Flattened ``KVArray(shape=Shape.OBJECT)`` values are written back as
    braced objects, everything else array-shaped as ``[ ... ]``.
    """

    def key(self, key: str) -> str:
        if not self.config.quote_keys and _BARE_KEY.fullmatch(key):
            return key
        return self.string(key)

    def encode(self, value: Any, array: bool = False) -> None:
        if array and isinstance(value, list | tuple):
            if len(value) == 1:
                self.write_value(value[0], 0, "", "\n")
                return
            pairs = self.flattened_pairs(list(value))
        else:
            classified = self.classify(value)
            if classified is None or classified[0] is Shape.ARRAY:
                raise EncodeTypeError(
                    f"Cannot serialise {type_name(value)}: "
                    "Brace documents need an object root"
                )
            pairs = classified[1]

        for key, item in pairs:
            self.write_value(item, 0, self.key(key) + "=", "\n")

    def container(
        self, shape: Shape, items: list[Any], depth: int
    ) -> Container:
        closing = "\t" * (depth - 1)
        if shape is Shape.OBJECT:
            return "{\n", self._pairs(items, depth), closing + "}"
        return "[\n", self._elements(items, depth), closing + "]"

    def _pairs(self, pairs: list[Any], depth: int) -> Iterator[Entry]:
        indent = "\t" * depth
        for key, value in pairs:
            yield indent + self.key(key) + "=", value, "\n"

    def _elements(self, items: list[Any], depth: int) -> Iterator[Entry]:
        indent = "\t" * depth
        for value in items:
            yield indent, value, ",\n"
