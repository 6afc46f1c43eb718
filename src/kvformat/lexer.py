"""
Tokenizer shared by the three dialects.

The lexer walks an immutable byte buffer, skips whitespace and the
dialect's comments, and classifies the next byte through the dialect's
256-entry table. String payloads are decoded into fresh ``str`` objects, so
a token stays valid after the lexer moves on.
"""

import re
from dataclasses import dataclass

from ._classify import Classifier
from ._classify import TokenType
from ._profiling import ProfileContext
from ._text import ESCAPE_TO_BYTE
from ._text import decode_unicode_escape
from ._text import is_invalid_number
from ._text import scan_float
from .config import ParseConfig
from .errors import EncodingError
from .errors import TokenError

type Position = int
type TokenValue = str | float | bool | None

_UTF8_BOM = b"\xef\xbb\xbf"
_BACKSLASH = ord("\\")
_QUOTE = ord('"')
_SLASH = ord("/")
_DIGITS = frozenset(b"0123456789")
_NUMBER_LEAD = _DIGITS | frozenset(b"+-")
_LETTERS = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_BARE_WORD_STOP = frozenset(b" \t\r\n={}[],")
_BARE_KEY_STOP = _BARE_WORD_STOP | {ord(":")}
_STRING_RUN = re.compile(rb'[^"\\\x00]*')
_LITERALS: tuple[tuple[bytes, TokenType, TokenValue], ...] = (
    (b"true", TokenType.BOOLEAN, True),
    (b"false", TokenType.BOOLEAN, False),
    (b"null", TokenType.NULL, None),
)


@dataclass(frozen=True)
class Token:
    """A classified token with its source byte span."""

    type: TokenType
    value: TokenValue
    start: Position
    end: Position


def check_encoding(data: bytes, classifier: Classifier) -> Position:
    """
    Rejects buffers that are not UTF-8 and returns the first byte to scan.

    A UTF-8 byte order mark is skipped. A NUL in either of the first two
    bytes means UTF-16 or UTF-32; any other unclassifiable first byte means
    some other non-UTF-8 encoding.
    """
    if data.startswith(_UTF8_BOM):
        start = len(_UTF8_BOM)
    else:
        if len(data) >= 2 and (data[0] == 0 or data[1] == 0):
            raise EncodingError(
                "parser does not support UTF-16 or UTF-32", data, 0
            )
        start = 0

    if start < len(data) and classifier[data[start]] is TokenType.ERROR:
        raise EncodingError("parser only supports UTF-8", data, start)
    return start


class Lexer:
    """
    Tokenizes one dialect's input for the parsers.

    ``key=True`` asks for key-position classification: in the Brace and
    Typed dialects digits and ``-`` then begin bare words instead of
    numbers, so numeric-looking keys keep their text.
    """

    def __init__(
        self,
        data: bytes,
        classifier: Classifier,
        config: ParseConfig,
        start: Position = 0,
    ) -> None:
        self.data = data
        self.classifier = classifier
        self.config = config
        self.pos = start
        self.length = len(data)

    def peek(self) -> int:
        """Returns current byte without advancing, 0 at the end."""
        return self.data[self.pos] if self.pos < self.length else 0

    def error(self, msg: str, pos: Position | None = None) -> TokenError:
        return TokenError(msg, self.data, self.pos if pos is None else pos)

    def skip_whitespace(self) -> None:
        """Skips whitespace and comments of the active dialect."""
        data = self.data
        classifier = self.classifier
        while self.pos < self.length:
            ch = data[self.pos]
            if classifier[ch] is TokenType.WHITESPACE:
                self.pos += 1
            elif (
                classifier.line_comments
                and ch == _SLASH
                and data.startswith(b"//", self.pos)
            ):
                self._skip_line_comment()
            elif classifier.xml_comments and data.startswith(
                b"<!--", self.pos
            ):
                self._skip_comment_marker()
            else:
                return

    def _skip_line_comment(self) -> None:
        while self.pos < self.length and self.data[self.pos] not in b"\r\n":
            self.pos += 1

    def _skip_comment_marker(self) -> None:
        end = self.data.find(b"-->", self.pos + 4)
        if end < 0:
            raise self.error("unterminated comment marker")
        self.pos = end + 3

    def scan_string(self) -> Token:
        """Scans a quoted string, translating escape sequences."""
        with ProfileContext("scan_string"):
            data = self.data
            start = self.pos
            pos = start + 1
            out = bytearray()

            while True:
                run = _STRING_RUN.match(data, pos)
                if run is not None and run.end() > pos:
                    out += run.group()
                    pos = run.end()

                if pos >= self.length or data[pos] == 0:
                    raise self.error("unexpected end of string", pos)

                ch = data[pos]
                if ch == _QUOTE:
                    break

                # Backslash escape
                esc = data[pos + 1] if pos + 1 < self.length else 0
                if esc == ord("u"):
                    decoded = decode_unicode_escape(data, pos)
                    if decoded is None:
                        raise self.error("invalid unicode escape code", pos)
                    out += decoded[0].encode("utf-8")
                    pos = decoded[1]
                    continue

                replacement = ESCAPE_TO_BYTE.get(esc)
                if replacement is None:
                    raise self.error("invalid escape code", pos)
                out.append(replacement)
                pos += 2

            self.pos = pos + 1
            return Token(
                TokenType.STRING, self._text(out, start), start, self.pos
            )

    def scan_bare_word(self, key: bool = False) -> Token:
        """
        Scans an unquoted word up to whitespace, ``=`` or a delimiter.

        Keys also stop at ``:`` so ``key: value`` splits; values keep it
        for drive letters.

        Any run of backslashes becomes a single ``/`` and the byte after it
        is kept as-is. This normalises Windows paths; it is not escaping.
        """
        with ProfileContext("scan_bare_word"):
            data = self.data
            start = pos = self.pos
            out = bytearray()
            stops = _BARE_KEY_STOP if key else _BARE_WORD_STOP

            while pos < self.length:
                ch = data[pos]
                if ch in stops:
                    break
                if ch == 0:
                    raise self.error("unexpected end of string", pos)
                if ch == _BACKSLASH:
                    while pos < self.length and data[pos] == _BACKSLASH:
                        pos += 1
                    if pos >= self.length:
                        raise self.error("unexpected end of string", pos)
                    out.append(_SLASH)
                    ch = data[pos]
                out.append(ch)
                pos += 1

            self.pos = pos
            return Token(TokenType.STRING, self._text(out, start), start, pos)

    def scan_number(self) -> Token:
        """Scans a number with a strtod-compatible reader."""
        with ProfileContext("scan_number"):
            start = self.pos
            scanned = scan_float(self.data, start)
            if scanned is None:
                raise self.error("invalid number")
            value, self.pos = scanned
            return Token(TokenType.NUMBER, value, start, self.pos)

    def scan_word_number(self) -> Token | None:
        """
        Reads ``inf``, ``infinity`` or ``nan`` spelled as a whole bare word.

        Returns None when the word is anything else, so ``information``
        stays a string.
        """
        scanned = scan_float(self.data, self.pos)
        if scanned is None:
            return None
        value, end = scanned
        if end < self.length and self.data[end] not in _BARE_WORD_STOP:
            return None
        start, self.pos = self.pos, end
        return Token(TokenType.NUMBER, value, start, end)

    def scan_literal(self) -> Token | None:
        """Scans ``true``, ``false`` or ``null``; None when absent."""
        start = self.pos
        for text, token_type, value in _LITERALS:
            if self.data.startswith(text, start):
                self.pos += len(text)
                return Token(token_type, value, start, self.pos)
        return None

    def scan_directive(self) -> Token:
        """
        Scans an inclusion directive ``#<word>"path"`` at the cursor.

        Anything between the marker and the opening quote (``#base``,
        ``#include``) is ignored. The path is taken verbatim.
        """
        data = self.data
        start = self.pos
        open_quote = self._find_on_line(_QUOTE, start + 1)
        if open_quote < 0:
            raise self.error("malformed inclusion directive", start)
        close_quote = self._find_on_line(_QUOTE, open_quote + 1)
        if close_quote < 0:
            raise self.error("unterminated inclusion path", open_quote)

        self.pos = close_quote + 1
        path = self._text(data[open_quote + 1 : close_quote], open_quote)
        return Token(TokenType.REF, path, start, self.pos)

    def _find_on_line(self, byte: int, pos: Position) -> Position:
        while pos < self.length:
            ch = self.data[pos]
            if ch == byte:
                return pos
            if ch in b"\r\n" or ch == 0:
                return -1
            pos += 1
        return -1

    def _text(self, raw: bytes | bytearray, start: Position) -> str:
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise self.error("invalid UTF-8 in string", start) from e

    def next_token(self, key: bool = False) -> Token:
        """Returns the next token; End at the end of input."""
        self.skip_whitespace()
        start = self.pos
        if start >= self.length:
            return Token(TokenType.END, None, start, start)

        ch = self.data[start]
        kind = self.classifier[ch]

        if kind is TokenType.END:
            return Token(TokenType.END, None, start, start)
        if kind in (TokenType.ERROR, TokenType.COMMENT):
            raise self.error("invalid token")
        if kind is not TokenType.UNKNOWN:
            self.pos += 1
            return Token(kind, chr(ch), start, self.pos)

        if ch == _QUOTE:
            return self.scan_string()

        if self.classifier.bare_words:
            if ch in _LETTERS and not key and self.config.invalid_numbers:
                number = self.scan_word_number()
                if number is not None:
                    return number
            if ch in _LETTERS or (key and (ch in _DIGITS or ch == ord("-"))):
                return self.scan_bare_word(key)
        else:
            literal = self.scan_literal()
            if literal is not None:
                return literal

        invalid = is_invalid_number(self.data, start)
        if ch in _NUMBER_LEAD:
            if invalid and not self.config.invalid_numbers:
                raise self.error("invalid number")
            return self.scan_number()
        if invalid and self.config.invalid_numbers:
            # inf and nan
            return self.scan_number()

        raise self.error("invalid token")
