"""
Exception hierarchy shared by every dialect.

Every error is fatal to the call that raised it: decoders and encoders never
return partial results, and any scratch storage owned by the call is
released before the exception leaves it.
"""

type Position = int


class KVError(Exception):
    """Base class for all kvformat failures."""


class KVDecodeError(KVError, ValueError):
    """
    Handles parse failures with precise position and context information.

    ``pos`` is a byte offset into the decoded buffer; line and column are
    derived from it so messages point at the offending byte.
    """

    def __init__(
        self, msg: str, doc: bytes | str = b"", pos: Position = 0
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.doc = doc
        self.pos = pos

        newline = b"\n" if isinstance(doc, bytes) else "\n"
        self.lineno = doc.count(newline, 0, pos) + 1 if doc else 1
        self.colno = pos - doc.rfind(newline, 0, pos) if doc else pos + 1

        super().__init__(f"{msg} at line {self.lineno}, column {self.colno}")

    def __reduce__(self) -> tuple[type, tuple[str, bytes | str, int]]:
        return self.__class__, (self.msg, self.doc, self.pos)


class TokenError(KVDecodeError):
    """Invalid byte, escape sequence or number at an offset."""


class StructuralError(KVDecodeError):
    """Grammar violation: a token arrived where another was expected."""

    @classmethod
    def expected(
        cls, what: str, found: str, doc: bytes, pos: Position
    ) -> "StructuralError":
        return cls(f"Expected {what} but found {found}", doc, pos)


class EncodingError(KVDecodeError):
    """Input is not UTF-8 (UTF-16/32 or an unrecognisable first byte)."""


class DepthExceededError(KVError, ValueError):
    """Nesting beyond the configured maximum, while decoding or encoding."""

    def __init__(self, msg: str, depth: int, pos: Position | None = None):
        self.depth = depth
        self.pos = pos
        super().__init__(msg)

    def __reduce__(self) -> tuple[type, tuple[str, int, Position | None]]:
        return self.__class__, (str(self), self.depth, self.pos)


class KVEncodeError(KVError, ValueError):
    """A value could not be serialised with the active configuration."""


class SparseArrayError(KVEncodeError):
    """An array-shaped mapping is too sparse and conversion is disabled."""


class EncodeTypeError(KVError, TypeError):
    """Unsupported value type, or a key type the dialect cannot write."""


class KVFileError(KVError, OSError):
    """Reading a document or one of its inclusions failed."""


__all__ = [
    "DepthExceededError",
    "EncodeTypeError",
    "EncodingError",
    "KVDecodeError",
    "KVEncodeError",
    "KVError",
    "KVFileError",
    "SparseArrayError",
    "StructuralError",
    "TokenError",
]
