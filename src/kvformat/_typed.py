"""
Typed-array dialect: every entry carries a type name.

::

    "origin" "vector3" [ 0, 0, 64 ]
    "scale" "float" 1.5
    "children" {
        "name" "string" "leaf"
    }

``"key" "typename" payload`` decodes to ``KVArray([typename, payload])``;
a key followed directly by ``{`` or ``[`` stores the container as-is.
Inside arrays, elements are ``value``, ``typename payload`` or
``typename = payload``, separated by commas.
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
from .errors import EncodeTypeError
from .lexer import Token
from .tree import KVArray
from .tree import KVObject
from .tree import Shape
from .tree import TreeValue

_CONTAINERS = (TokenType.OBJ_BEGIN, TokenType.ARR_BEGIN)


class TypedParser(BaseParser):
    """Parses one Typed-array document into a ``KVObject``."""

    dialect = Dialect.TYPED

    def parse_document(self) -> KVObject | KVArray:
        self.stack.append(Frame(KVObject(), TokenType.END, counted=False))
        with ProfileContext("parse_containers"):
            while True:
                frame = self.stack[-1]
                if frame.is_array:
                    result = self.array_step(frame)
                else:
                    result = self.object_step(frame)
                if result is not None:
                    return result

    def attach(self, frame: Frame, value: TreeValue) -> None:
        if frame.typename is not None:
            value = KVArray([frame.typename, value])
            frame.typename = None
        super().attach(frame, value)

    def put(self, frame: Frame, token: Token) -> None:
        if token.type in _CONTAINERS:
            self.open(token)
        else:
            self.attach(frame, self.scalar(token))

    def object_step(self, frame: Frame) -> KVObject | KVArray | None:
        token = self.advance(key=True)
        if token.type is frame.closer:
            return self.close()
        if token.type is TokenType.COMMA and not frame.expect_value:
            frame.expect_value = True
            return None
        if token.type is not TokenType.STRING:
            raise self.unexpected("object key string", token)

        frame.key = token.value
        kind = self.advance(key=True)
        if kind.type in _CONTAINERS:
            self.open(kind)
        elif kind.type is TokenType.STRING:
            frame.typename = kind.value
            self.put(frame, self.advance())
        else:
            raise self.unexpected("type name or container", kind)
        frame.expect_value = False
        return None

    def array_step(self, frame: Frame) -> KVObject | KVArray | None:
        token = self.advance()
        if token.type is TokenType.ARR_END:
            return self.close()
        if not frame.expect_value:
            if token.type is not TokenType.COMMA:
                raise self.unexpected("',' or ']'", token)
            frame.expect_value = True
            return None

        frame.expect_value = False
        if token.type in _CONTAINERS:
            self.open(token)
            return None

        # A scalar is either the element itself or the type of the next one
        value = self.scalar(token)
        follow = self.advance()
        if follow.type is TokenType.COMMA:
            self.attach(frame, value)
            frame.expect_value = True
            return None
        if follow.type is TokenType.ARR_END:
            self.attach(frame, value)
            return self.close()
        if not isinstance(value, str):
            raise self.unexpected("',' or ']'", follow)
        if follow.type is TokenType.COLON:
            follow = self.advance()
        frame.typename = value
        self.put(frame, follow)
        return None


def _is_container(value: Any) -> bool:
    return isinstance(value, KVObject | list | tuple | Mapping)


def _is_typed_pair(value: Any) -> bool:
    if isinstance(value, KVArray) and value.shape is Shape.OBJECT:
        return False
    return (
        isinstance(value, list | tuple)
        and len(value) == 2
        and isinstance(value[0], str)
    )


class TypedEncoder(BaseEncoder):
    """
    Writes ``"key" "typename" payload`` lines.

    Two-element ``[str, payload]`` sequences are written as typed entries;
    containers without a type are written directly after their key.
    """

    def encode(self, value: Any) -> None:
        classified = self.classify(value)
        if classified is None or classified[0] is Shape.ARRAY:
            raise EncodeTypeError(
                f"Cannot serialise {type_name(value)}: "
                "Typed documents need an object root"
            )
        for key, item in classified[1]:
            prefix, payload = self.entry(key, item)
            self.write_value(payload, 0, prefix, "\n")

    def entry(self, key: str, value: Any, indent: str = "") -> tuple[str, Any]:
        prefix = indent + self.string(key) + " "
        if _is_typed_pair(value):
            return prefix + self.string(value[0]) + " ", value[1]
        if _is_container(value):
            return prefix, value
        raise EncodeTypeError(
            f"Cannot serialise {type_name(value)}: typed entries need a "
            "[typename, payload] pair or a container"
        )

    def container(
        self, shape: Shape, items: list[Any], depth: int
    ) -> Container:
        closing = "\t" * (depth - 1)
        if shape is Shape.OBJECT:
            return "{\n", self._entries(items, depth), closing + "}"
        return "[\n", self._elements(items, depth), closing + "]"

    def _entries(self, pairs: list[Any], depth: int) -> Iterator[Entry]:
        indent = "\t" * depth
        for key, value in pairs:
            prefix, payload = self.entry(key, value, indent)
            yield prefix, payload, "\n"

    def _elements(self, items: list[Any], depth: int) -> Iterator[Entry]:
        indent = "\t" * depth
        last = len(items) - 1
        for i, value in enumerate(items):
            suffix = "\n" if i == last else ",\n"
            if _is_typed_pair(value) and _is_container(value[1]):
                yield indent + self.string(value[0]) + " ", value[1], suffix
            else:
                yield indent, value, suffix
