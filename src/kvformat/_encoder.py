"""
Encoder machinery shared by the dialect encoders.

Containers are written from an explicit stack of entry iterators, so deep
or cyclic inputs hit ``EncodeConfig.max_depth`` instead of the
interpreter's recursion limit.
"""

import math
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._profiling import ProfileContext
from ._text import escape_string
from ._text import format_number
from .config import EncodeConfig
from .config import InvalidNumbers
from .errors import DepthExceededError
from .errors import EncodeTypeError
from .errors import KVEncodeError
from .errors import SparseArrayError
from .tree import KVArray
from .tree import KVObject
from .tree import Shape

# (text before the value, value, text after the value)
type Entry = tuple[str, Any, str]
type Container = tuple[str, Iterator[Entry], str]


class EncodeBuffer:
    """Growable UTF-8 byte accumulator, reusable across encode calls."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        self._data = bytearray()

    def write(self, text: str) -> None:
        try:
            self._data += text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise KVEncodeError(
                f"Cannot serialise string: {e.reason}"
            ) from e

    def reset(self) -> None:
        del self._data[:]

    def getvalue(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)


@dataclass(slots=True)
class _Frame:
    entries: Iterator[Entry]
    close: str
    depth: int


def type_name(value: object) -> str:
    return type(value).__name__


class BaseEncoder:
    """
    Shared scalar formatting, container classification and traversal.

    Subclasses supply ``container`` (opening text, entries, closing text)
    and may override ``scalar``.
    """

    def __init__(self, config: EncodeConfig, buffer: EncodeBuffer) -> None:
        self.config = config
        self.buffer = buffer

    def number(self, value: int | float) -> str:
        """Formats a number with ``%.Ng`` under the NaN/Infinity policy."""
        try:
            number = float(value)
        except OverflowError as e:
            raise KVEncodeError(
                "Cannot serialise number: integer out of range"
            ) from e

        if not math.isfinite(number):
            policy = self.config.invalid_numbers
            if policy is InvalidNumbers.REJECT:
                raise KVEncodeError(
                    "Cannot serialise number: must not be NaN or Infinity"
                )
            if policy is InvalidNumbers.NULL:
                return "null"
            if math.isnan(number):
                return "NaN"
            return "Infinity" if number > 0 else "-Infinity"

        return format_number(number, self.config.number_precision)

    def string(self, value: str) -> str:
        return f'"{escape_string(value)}"'

    def scalar(self, value: Any) -> str:
        if value is None:
            return "null"
        if value is True:
            return "true"
        if value is False:
            return "false"
        if isinstance(value, str):
            return self.string(value)
        if isinstance(value, int | float):
            return self.number(value)
        raise EncodeTypeError(
            f"Cannot serialise {type_name(value)}: type not supported"
        )

    def key_text(self, key: Any) -> str:
        """Converts a mapping key to text; numbers use ``number``."""
        if isinstance(key, str):
            return key
        if isinstance(key, int | float) and not isinstance(key, bool):
            return self.number(key)
        raise EncodeTypeError(
            f"Cannot serialise {type_name(key)}: "
            "table key must be a number or string"
        )

    def array_length(self, mapping: Mapping[Any, Any]) -> int | None:
        """
        Returns the array length of an integer-keyed mapping, else None.

        Only mappings whose keys are all positive integers qualify. Missing
        indices below the maximum are written as null. An excessively sparse
        mapping is converted to an object or rejected.
        """
        items = 0
        max_index = 0
        for key in mapping:
            if isinstance(key, bool) or not isinstance(key, int | float):
                return None
            if isinstance(key, float) and not key.is_integer():
                return None
            if key < 1:
                return None
            max_index = max(max_index, int(key))
            items += 1

        if items == 0:
            return None

        cfg = self.config
        if (
            cfg.sparse_ratio > 0
            and max_index > items * cfg.sparse_ratio
            and max_index > cfg.sparse_safe
        ):
            if not cfg.sparse_convert:
                raise SparseArrayError(
                    "Cannot serialise table: excessively sparse array"
                )
            return None
        return max_index

    def classify(self, value: Any) -> tuple[Shape, list[Any]] | None:
        """
        Returns the container shape and its items, None for scalars.

        Object items are ``(key_text, value)`` pairs; array items are the
        element values.
        """
        if isinstance(value, KVObject):
            return Shape.OBJECT, [
                (self.key_text(k), v) for k, v in value.items()
            ]
        if isinstance(value, KVArray) and value.shape is Shape.OBJECT:
            return Shape.OBJECT, self.flattened_pairs(value)
        if isinstance(value, list | tuple):
            return Shape.ARRAY, list(value)
        if isinstance(value, Mapping):
            length = self.array_length(value)
            if length is None:
                return Shape.OBJECT, [
                    (self.key_text(k), v) for k, v in value.items()
                ]
            return Shape.ARRAY, [value.get(i) for i in range(1, length + 1)]
        return None

    def flattened_pairs(self, items: list[Any]) -> list[tuple[str, Any]]:
        """Pairs up a flattened ``[key, value, ...]`` object."""
        if len(items) % 2:
            raise EncodeTypeError(
                "Cannot serialise flattened object: odd number of elements"
            )
        it = iter(items)
        pairs = []
        for key, value in zip(it, it):
            if isinstance(key, KVObject | KVArray | list | tuple | Mapping):
                raise EncodeTypeError(
                    f"Cannot serialise {type_name(key)}: "
                    "flattened object keys must be scalars"
                )
            pairs.append((self.key_text(key), value))
        return pairs

    def container(
        self, shape: Shape, items: list[Any], depth: int
    ) -> Container:
        raise NotImplementedError

    def check_depth(self, depth: int) -> None:
        if depth > self.config.max_depth:
            raise DepthExceededError(
                f"Cannot serialise, excessive nesting ({depth})", depth
            )

    def write_value(
        self, value: Any, depth: int = 0, prefix: str = "", suffix: str = ""
    ) -> None:
        """Writes ``value`` and everything below it without recursing."""
        with ProfileContext("write_value"):
            stack: list[_Frame] = []
            self._emit(value, depth, prefix, suffix, stack)
            while stack:
                frame = stack[-1]
                entry = next(frame.entries, None)
                if entry is None:
                    stack.pop()
                    self.buffer.write(frame.close)
                    continue
                before, child, after = entry
                self._emit(child, frame.depth, before, after, stack)

    def _emit(
        self,
        value: Any,
        depth: int,
        prefix: str,
        suffix: str,
        stack: list[_Frame],
    ) -> None:
        classified = self.classify(value)
        if classified is None:
            self.buffer.write(prefix + self.scalar(value) + suffix)
            return

        depth += 1
        self.check_depth(depth)
        shape, items = classified
        opening, entries, closing = self.container(shape, items, depth)
        self.buffer.write(prefix + opening)
        stack.append(_Frame(entries, closing + suffix, depth))
