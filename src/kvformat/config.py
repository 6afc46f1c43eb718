"""
Immutable decode and encode configuration.

A configuration never changes during a call. ``Codec.configure`` swaps in a
new instance between calls, which is also how the persistent encode buffer
is toggled.
"""

from dataclasses import dataclass
from enum import Enum

DEFAULT_MAX_DEPTH = 1000
DEFAULT_NUMBER_PRECISION = 14
MAX_NUMBER_PRECISION = 14
DEFAULT_SPARSE_RATIO = 2
DEFAULT_SPARSE_SAFE = 10
DEFAULT_MAX_INCLUDE_DEPTH = 32


class LoadMode(Enum):
    """How containers are materialised while decoding."""

    MAP = "map"
    ARRAY = "array"


class InvalidNumbers(Enum):
    """Encoding policy for NaN and the infinities."""

    REJECT = "off"
    LITERAL = "on"
    NULL = "null"


class IncludeDepth(Enum):
    """
    Depth accounting across Map-dialect inclusions.

    SHARED charges each inclusion level against ``max_depth`` so total
    nesting across files stays bounded; FRESH gives every included file its
    own budget and relies on ``max_include_depth`` alone.
    """

    SHARED = "shared"
    FRESH = "fresh"


def _check_int(name: str, value: object, low: int, high: int | None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if high is None and value < low:
        raise ValueError(f"{name} must be at least {low}")
    if high is not None and not low <= value <= high:
        raise ValueError(f"{name} must be an integer between {low} and {high}")


def _check_bool(name: str, value: object) -> None:
    if not isinstance(value, bool):
        raise TypeError(f"{name} must be a boolean")


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures decoding behavior with immutable settings.

    ``invalid_numbers`` lets hexadecimal, ``+``-prefixed, zero-padded and
    ``inf``/``nan`` literals through to the float reader instead of failing
    the strict pre-check.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    invalid_numbers: bool = False
    include_depth: IncludeDepth = IncludeDepth.SHARED
    max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH

    def __post_init__(self) -> None:
        _check_int("max_depth", self.max_depth, 1, None)
        _check_bool("invalid_numbers", self.invalid_numbers)
        if not isinstance(self.include_depth, IncludeDepth):
            raise TypeError("include_depth must be an IncludeDepth")
        _check_int("max_include_depth", self.max_include_depth, 1, None)


@dataclass(frozen=True)
class EncodeConfig:
    """
    Configures encoding behavior with immutable settings.

    The sparse-array settings decide when a mapping whose keys are all
    positive integers is written as an array: it is, unless
    ``max_index > item_count * sparse_ratio`` and ``max_index >
    sparse_safe``; then it is written as an object when ``sparse_convert``
    is set and rejected otherwise. ``sparse_ratio=0`` disables the check.
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    number_precision: int = DEFAULT_NUMBER_PRECISION
    invalid_numbers: InvalidNumbers = InvalidNumbers.REJECT
    sparse_convert: bool = False
    sparse_ratio: int = DEFAULT_SPARSE_RATIO
    sparse_safe: int = DEFAULT_SPARSE_SAFE
    keep_buffer: bool = True
    newlines: bool = True
    quote_keys: bool = False

    def __post_init__(self) -> None:
        _check_int("max_depth", self.max_depth, 1, None)
        _check_int(
            "number_precision", self.number_precision, 1, MAX_NUMBER_PRECISION
        )
        if not isinstance(self.invalid_numbers, InvalidNumbers):
            raise TypeError("invalid_numbers must be an InvalidNumbers")
        _check_bool("sparse_convert", self.sparse_convert)
        _check_int("sparse_ratio", self.sparse_ratio, 0, None)
        _check_int("sparse_safe", self.sparse_safe, 0, None)
        _check_bool("keep_buffer", self.keep_buffer)
        _check_bool("newlines", self.newlines)
        _check_bool("quote_keys", self.quote_keys)


__all__ = [
    "EncodeConfig",
    "IncludeDepth",
    "InvalidNumbers",
    "LoadMode",
    "ParseConfig",
]
