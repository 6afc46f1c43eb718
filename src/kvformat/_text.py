"""
Escape, Unicode and number conversions shared by every dialect.
"""

import re

# Decoding: escape character -> replacement byte. "u" needs the UTF-16 path.
ESCAPE_TO_BYTE: dict[int, int] = {
    ord('"'): ord('"'),
    ord("\\"): ord("\\"),
    ord("/"): ord("/"),
    ord("b"): ord("\b"),
    ord("t"): ord("\t"),
    ord("n"): ord("\n"),
    ord("f"): ord("\f"),
    ord("r"): ord("\r"),
}

# Encoding: fixed table for control characters, quote and backslash.
CHAR_TO_ESCAPE: dict[str, str] = {
    chr(i): f"\\u{i:04x}" for i in (*range(0x20), 0x7F)
}
CHAR_TO_ESCAPE.update(
    {
        "\b": "\\b",
        "\t": "\\t",
        "\n": "\\n",
        "\f": "\\f",
        "\r": "\\r",
        '"': '\\"',
        "\\": "\\\\",
    }
)
_NEEDS_ESCAPE = re.compile("[" + re.escape("".join(CHAR_TO_ESCAPE)) + "]")

_FLOAT_PREFIX = re.compile(
    rb"[+-]?(?:"
    rb"0[xX](?:[0-9a-fA-F]+(?:\.[0-9a-fA-F]*)?|\.[0-9a-fA-F]+)"
    rb"(?:[pP][+-]?[0-9]+)?"
    rb"|(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    rb"|[iI][nN][fF](?:[iI][nN][iI][tT][yY])?"
    rb"|[nN][aA][nN]"
    rb")"
)

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_HIGH_SURROGATE = 0xD800
_LOW_SURROGATE = 0xDC00
_SURROGATE_MASK = 0xFC00


def escape_string(s: str) -> str:
    """Escapes control characters, quote and backslash (no quotes added)."""
    return _NEEDS_ESCAPE.sub(lambda m: CHAR_TO_ESCAPE[m.group()], s)


def decode_hex4(data: bytes, pos: int) -> int:
    """Decodes four hex digits at ``pos``; returns -1 when malformed."""
    digits = data[pos : pos + 4]
    if len(digits) != 4 or not all(ch in _HEX_DIGITS for ch in digits):
        return -1
    return int(digits, 16)


def decode_unicode_escape(data: bytes, pos: int) -> tuple[str, int] | None:
    """
    Decodes a ``\\uXXXX`` escape starting at the backslash at ``pos``.

    A high surrogate must be followed immediately by a ``\\u`` low
    surrogate; the pair is combined into one code point. Returns the
    character and the position after the escape, or None when invalid.
    """
    codepoint = decode_hex4(data, pos + 2)
    if codepoint < 0:
        return None
    end = pos + 6

    if codepoint & 0xF800 == _HIGH_SURROGATE:
        # A low surrogate may not come first
        if codepoint & 0x400:
            return None
        if data[end : end + 2] != b"\\u":
            return None
        low = decode_hex4(data, end + 2)
        if low < 0 or low & _SURROGATE_MASK != _LOW_SURROGATE:
            return None
        codepoint = (((codepoint & 0x3FF) << 10) | (low & 0x3FF)) + 0x10000
        end += 6

    return chr(codepoint), end


def is_invalid_number(data: bytes, pos: int) -> bool:
    """
    Flags numbers a float reader accepts but the strict grammar forbids.

    Strict numbers follow ``-?(0|[1-9][0-9]*)(\\.[0-9]+)?([eE][-+]?[0-9]+)?``.
    This catches a leading ``+``, hexadecimal, leading zeros and
    ``inf``/``nan`` in any case. Anything else is left for the float
    reader to accept or reject.
    """
    length = len(data)
    p = pos
    if p < length and data[p] == ord("+"):
        return True
    if p < length and data[p] == ord("-"):
        p += 1

    ch = data[p] if p < length else 0
    if ch == ord("0"):
        ch2 = data[p + 1] if p + 1 < length else 0
        return (ch2 | 0x20) == ord("x") or ord("0") <= ch2 <= ord("9")
    if ch <= ord("9"):
        return False

    return data[p : p + 3].lower() in (b"inf", b"nan")


def scan_float(data: bytes, pos: int) -> tuple[float, int] | None:
    """
    Reads the longest float prefix at ``pos``, like C ``strtod``.

    Returns the value and the end position, or None if nothing matched.
    """
    match = _FLOAT_PREFIX.match(data, pos)
    if match is None:
        return None
    text = match.group().decode("ascii")
    if "x" in text or "X" in text:
        return float.fromhex(text), match.end()
    return float(text), match.end()


def format_number(value: float, precision: int) -> str:
    """
    Formats a finite double with at most ``precision`` significant digits.

    ``%g`` drops trailing zeros, so the result is the shortest text that
    reads back to the same double once rounded to ``precision`` digits.
    """
    return format(value, f".{precision}g")
