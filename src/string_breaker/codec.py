"""Bidirectional escape codec between raw literals and quoted source text."""

from __future__ import annotations

QUOTE_CHARS = ('"', "'", "`")

_PLACEHOLDER_FIRST = 0xE000
_PLACEHOLDER_LAST = 0xF8FF

# Sequences read back by unescape, applied after double backslashes are parked.
_UNESCAPE_SEQUENCES = (
    ("\\n", "\n"),
    ("\\t", "\t"),
    ("\\r", "\r"),
    ('\\"', '"'),
    ("\\'", "'"),
    ("\\`", "`"),
    ("\\0", "\0"),
)

_ESCAPE_SEQUENCES = (
    ("\n", "\\n"),
    ("\t", "\\t"),
    ("\r", "\\r"),
    ("\0", "\\0"),
)


def unescape(escaped: str) -> str:
    """Render escape sequences as the characters they stand for.

    Unknown sequences pass through unchanged, so ``\\q`` stays two characters.
    """
    if not escaped:
        return ""
    placeholder = _placeholder_for(escaped)
    result = escaped.replace("\\\\", placeholder)
    for sequence, literal in _UNESCAPE_SEQUENCES:
        result = result.replace(sequence, literal)
    return result.replace(placeholder, "\\")


def escape(raw: str, quote_char: str = '"') -> str:
    """Escape raw text for placement between two ``quote_char`` delimiters.

    Only the delimiter quote is escaped; other quote characters are left alone.
    """
    if not raw:
        return ""
    result = raw.replace("\\", "\\\\")
    for literal, sequence in _ESCAPE_SEQUENCES:
        result = result.replace(literal, sequence)
    if quote_char in QUOTE_CHARS:
        result = result.replace(quote_char, f"\\{quote_char}")
    return result


def is_quote_char(value: str) -> bool:
    """Return True when value is one of the supported delimiters."""
    return value in QUOTE_CHARS


def _placeholder_for(text: str) -> str:
    for codepoint in range(_PLACEHOLDER_FIRST, _PLACEHOLDER_LAST + 1):
        candidate = chr(codepoint)
        if candidate not in text:
            return candidate
    raise ValueError("No private-use placeholder is free in the text to unescape.")
