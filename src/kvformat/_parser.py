"""
Parser machinery shared by the dialect parsers.

Parsers never recurse: open containers live on an explicit stack of
``Frame`` records, so nesting is bounded by ``ParseConfig.max_depth`` and
not by the interpreter's call stack.
"""

from dataclasses import dataclass

from ._classify import CLASSIFIERS
from ._classify import Dialect
from ._classify import TokenType
from .config import LoadMode
from .config import ParseConfig
from .errors import DepthExceededError
from .errors import StructuralError
from .lexer import Lexer
from .lexer import Token
from .lexer import check_encoding
from .tree import KVArray
from .tree import KVObject
from .tree import Shape
from .tree import TreeValue

_SCALARS = frozenset(
    {TokenType.STRING, TokenType.NUMBER, TokenType.BOOLEAN, TokenType.NULL}
)


@dataclass(slots=True)
class Frame:
    """
    One open container.

    ``key`` and ``typename`` hold the pending entry whose value is the
    child container currently being parsed. ``expect_value`` is set while
    a separator has been consumed and an entry must follow.
    """

    container: KVObject | KVArray
    closer: TokenType
    counted: bool = True
    key: str | None = None
    typename: str | None = None
    expect_value: bool = True
    first: bool = True
    wrapped: bool = False

    @property
    def is_array(self) -> bool:
        return self.closer is TokenType.ARR_END


def add_pair(
    container: KVObject | KVArray, key: str, value: TreeValue
) -> None:
    """Stores a pair; array mode flattens it into two elements."""
    if isinstance(container, KVObject):
        container.append(key, value)
    else:
        container.append(key)
        container.append(value)


class BaseParser:
    """
    Token stream plus depth accounting for one decode call.

    ``depth`` starts above zero when the document is an inclusion whose
    parent already consumed part of the nesting budget.
    """

    dialect: Dialect

    def __init__(
        self,
        data: bytes,
        config: ParseConfig,
        mode: LoadMode = LoadMode.MAP,
        depth: int = 0,
    ) -> None:
        classifier = CLASSIFIERS[self.dialect]
        start = check_encoding(data, classifier)
        self.lexer = Lexer(data, classifier, config, start)
        self.config = config
        self.mode = mode
        self.depth = depth
        self.stack: list[Frame] = []
        self._pushed: Token | None = None

    def advance(self, key: bool = False) -> Token:
        """Returns the next token, or the one handed back by ``push_back``."""
        if self._pushed is not None:
            token, self._pushed = self._pushed, None
            return token
        return self.lexer.next_token(key)

    def push_back(self, token: Token) -> None:
        self._pushed = token

    def unexpected(self, what: str, token: Token) -> StructuralError:
        return StructuralError.expected(
            what, token.type.value, self.lexer.data, token.start
        )

    def descend(self, token: Token) -> None:
        self.depth += 1
        if self.depth > self.config.max_depth:
            raise DepthExceededError(
                f"Found too many nested data structures ({self.depth}) "
                f"at character {token.start}",
                self.depth,
                token.start,
            )

    def scalar(self, token: Token) -> TreeValue:
        if token.type not in _SCALARS:
            raise self.unexpected("value", token)
        return token.value

    def expect_end(self) -> None:
        token = self.advance()
        if token.type is not TokenType.END:
            raise self.unexpected("the end", token)

    def new_object(self) -> KVObject | KVArray:
        if self.mode is LoadMode.ARRAY:
            return KVArray(shape=Shape.OBJECT)
        return KVObject()

    def open(self, token: Token) -> None:
        """Pushes a frame for the container that ``token`` begins."""
        self.descend(token)
        if token.type is TokenType.ARR_BEGIN:
            self.stack.append(Frame(KVArray(), TokenType.ARR_END))
        else:
            self.stack.append(Frame(self.new_object(), TokenType.OBJ_END))

    def attach(self, frame: Frame, value: TreeValue) -> None:
        if frame.is_array:
            frame.container.append(value)
        else:
            assert frame.key is not None
            add_pair(frame.container, frame.key, value)
            frame.key = None

    def close(self) -> KVObject | KVArray | None:
        """
        Pops the innermost frame and hands its container to the parent.

        Returns the container once the outermost frame has closed.
        """
        frame = self.stack.pop()
        if frame.counted:
            self.depth -= 1
        if not self.stack:
            return frame.container
        self.attach(self.stack[-1], frame.container)
        return None
