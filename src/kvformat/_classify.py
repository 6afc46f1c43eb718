"""Byte classification tables, one per dialect."""

from dataclasses import dataclass
from enum import Enum


class Dialect(Enum):
    """The three fixed grammars of the format family."""

    MAP = "map"
    BRACE = "brace"
    TYPED = "typed"


class TokenType(Enum):
    """Token categories; values double as names in error messages."""

    OBJ_BEGIN = "'{'"
    OBJ_END = "'}'"
    ARR_BEGIN = "'['"
    ARR_END = "']'"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    COLON = "separator"
    COMMA = "','"
    REF = "'#'"
    COMMENT = "comment"
    END = "the end"
    WHITESPACE = "whitespace"
    ERROR = "invalid token"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Classifier:
    """
    256-entry byte to token category table for one dialect.

    UNKNOWN marks lead bytes that need a dedicated scanner (strings,
    numbers, bare words, literals, comment markers).
    """

    dialect: Dialect
    table: tuple[TokenType, ...]
    bare_words: bool
    xml_comments: bool
    line_comments: bool

    def __getitem__(self, byte: int) -> TokenType:
        return self.table[byte]


_LETTERS = b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base_table() -> list[TokenType]:
    table = [TokenType.ERROR] * 256
    table[ord("{")] = TokenType.OBJ_BEGIN
    table[ord("}")] = TokenType.OBJ_END
    table[ord(",")] = TokenType.COMMA
    table[0] = TokenType.END
    for ch in b" \t\n\r":
        table[ch] = TokenType.WHITESPACE
    for ch in b'"+-0123456789':
        table[ch] = TokenType.UNKNOWN
    return table


def _map_classifier() -> Classifier:
    table = _base_table()
    table[ord("#")] = TokenType.REF
    table[ord("/")] = TokenType.COMMENT
    # true, false, null, inf, nan
    for ch in b"fiInNt":
        table[ch] = TokenType.UNKNOWN
    return Classifier(
        Dialect.MAP,
        tuple(table),
        bare_words=False,
        xml_comments=False,
        line_comments=True,
    )


def _brace_classifier(dialect: Dialect) -> Classifier:
    table = _base_table()
    table[ord("[")] = TokenType.ARR_BEGIN
    table[ord("]")] = TokenType.ARR_END
    table[ord("=")] = TokenType.COLON
    table[ord(":")] = TokenType.COLON
    table[ord("<")] = TokenType.UNKNOWN
    for ch in _LETTERS:
        table[ch] = TokenType.UNKNOWN
    return Classifier(
        dialect,
        tuple(table),
        bare_words=True,
        xml_comments=True,
        line_comments=False,
    )


CLASSIFIERS: dict[Dialect, Classifier] = {
    Dialect.MAP: _map_classifier(),
    Dialect.BRACE: _brace_classifier(Dialect.BRACE),
    Dialect.TYPED: _brace_classifier(Dialect.TYPED),
}
