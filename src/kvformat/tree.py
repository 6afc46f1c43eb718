"""
Dynamically typed tree values produced by decoding and consumed by encoding.

Scalars are plain Python values (``None``, ``bool``, ``float``, ``str``).
Containers are ``KVObject``, an ordered mapping that tolerates duplicate
keys, and ``KVArray``, a list tagged with the shape it was read from.
"""

from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from enum import Enum
from typing import Any

_MISSING = object()


class Shape(Enum):
    """Original container shape of a flattened array."""

    OBJECT = "object"
    ARRAY = "array"


class KVArray(list[Any]):
    """
    Ordered sequence of tree values.

    In array load mode objects are flattened into ``[key, value, ...]``
    sequences; ``shape`` records whether the source was brace- or
    bracket-delimited so an encoder can rebuild it.
    """

    def __init__(
        self, iterable: Iterable[Any] = (), shape: Shape = Shape.ARRAY
    ) -> None:
        super().__init__(iterable)
        self.shape = shape

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KVArray) and self.shape is not other.shape:
            return False
        return super().__eq__(other)

    def __ne__(self, other: object) -> bool:
        return not self == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"KVArray({list.__repr__(self)}, shape={self.shape})"

    def pairs(self) -> Iterator[tuple[Any, Any]]:
        """Yields consecutive (key, value) pairs of a flattened object."""
        it = iter(self)
        return zip(it, it, strict=True)


class KVObject:
    """
    Ordered key/value pairs; keys need not be unique.

    Lookup returns the first match. Assignment replaces the first match or
    appends, ``append`` always adds a new pair.
    """

    __slots__ = ("_pairs",)

    def __init__(
        self,
        pairs: Iterable[tuple[str, Any]] | Mapping[str, Any] = (),
    ) -> None:
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        self._pairs: list[tuple[str, Any]] = list(pairs)

    def append(self, key: str, value: Any) -> None:
        self._pairs.append((key, value))

    def extend(self, pairs: Iterable[tuple[str, Any]]) -> None:
        self._pairs.extend(pairs)

    def __getitem__(self, key: str) -> Any:
        for k, v in self._pairs:
            if k == key:
                return v
        raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.get_all(key)
        return value[0] if value else default

    def get_all(self, key: str) -> list[Any]:
        """Returns every value stored under ``key``, in insertion order."""
        return [v for k, v in self._pairs if k == key]

    def __setitem__(self, key: str, value: Any) -> None:
        for i, (k, _) in enumerate(self._pairs):
            if k == key:
                self._pairs[i] = (key, value)
                return
        self._pairs.append((key, value))

    def __delitem__(self, key: str) -> None:
        kept = [(k, v) for k, v in self._pairs if k != key]
        if len(kept) == len(self._pairs):
            raise KeyError(key)
        self._pairs = kept

    def pop(self, key: str, default: Any = _MISSING) -> Any:
        for i, (k, v) in enumerate(self._pairs):
            if k == key:
                del self._pairs[i]
                return v
        if default is _MISSING:
            raise KeyError(key)
        return default

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __bool__(self) -> bool:
        return bool(self._pairs)

    def keys(self) -> list[str]:
        return [k for k, _ in self._pairs]

    def values(self) -> list[Any]:
        return [v for _, v in self._pairs]

    def items(self) -> list[tuple[str, Any]]:
        return list(self._pairs)

    def has_duplicates(self) -> bool:
        return len({k for k, _ in self._pairs}) != len(self._pairs)

    def to_dict(self) -> dict[str, Any]:
        """Converts recursively to plain dicts and lists; last key wins."""
        return {k: _plain(v) for k, v in self._pairs}

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KVObject):
            return self._pairs == other._pairs
        if isinstance(other, Mapping):
            if self.has_duplicates():
                return False
            return dict(self._pairs) == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"KVObject({self._pairs!r})"


def _plain(value: Any) -> Any:
    if isinstance(value, KVObject):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


type TreeValue = None | bool | float | str | KVObject | KVArray


__all__ = ["KVArray", "KVObject", "Shape", "TreeValue"]
