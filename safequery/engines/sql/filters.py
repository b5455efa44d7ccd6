"""
Value encoders for the SQL template engine.

``encode`` turns one replacement value into its SQL literal. The set of
accepted kinds is closed (None, bool, int, float, str); anything else is an
EncodingError rather than being coerced.

String escaping is delegated to the store's canonical escaper (passed in as
``escape``); this module only normalizes typographic punctuation first and
adds the quotes afterwards.

Display escaping is a separate concern: ``escape_for_display`` HTML-escapes
text for presentation and is never applied on the way into the store.
"""

import math
import re
from collections.abc import Callable
from typing import Any

from markupsafe import escape

from safequery.core.errors import EncodingError

Escaper = Callable[[str], str]

QUOTE = "'"

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

# Curly quotes and em dash, as Unicode and as the cp1252 bytes 145-148/151
# seen when text was decoded as Latin-1.
_SMART_PUNCTUATION = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "“": '"',
        "”": '"',
        "—": "-",
        "\x91": "'",
        "\x92": "'",
        "\x93": '"',
        "\x94": '"',
        "\x97": "-",
    }
)

_BACKSLASH_SEQUENCES = {
    "0": "\x00",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "Z": "\x1a",
}
_BACKSLASH_PATTERN = re.compile(r"\\(.)", re.DOTALL)


def normalize_punctuation(value: str) -> str:
    """Replace smart quotes and em dashes with their plain-ASCII forms."""
    return value.translate(_SMART_PUNCTUATION)


def sql_null(value: None = None) -> str:
    return "NULL"


def sql_bool(value: bool) -> str:
    """TRUE/FALSE keywords, never 1/0, so narrow integer columns see a boolean."""
    return "TRUE" if value else "FALSE"


def _numeric(text: str) -> str:
    # "active-{0}" with -1 must not become "active--1" (a line comment).
    return f"({text})" if text.startswith("-") else text


def sql_int(value: int) -> str:
    """Signed 64-bit range only; wider integers would be stored as lossy REAL."""
    if not INT_MIN <= value <= INT_MAX:
        raise EncodingError(f"integer outside the signed 64-bit range ({value.bit_length()} bits)")
    return _numeric(str(int(value)))


def sql_float(value: float) -> str:
    """
    Shortest repr that round-trips exactly. NaN and infinities have no SQL
    literal and are rejected.
    """
    if not math.isfinite(value):
        raise EncodingError(f"non-finite float {value!r} has no SQL literal")
    return _numeric(repr(float(value)))


def sql_string(value: str, escape_fn: Escaper) -> str:
    """Normalize punctuation, escape with the store's escaper, wrap in quotes."""
    processed = normalize_punctuation(value)
    escaped = escape_fn(processed)
    if processed and not escaped:
        raise EncodingError(
            f"escaping produced an empty literal for a {len(value)}-character string"
        )
    return f"{QUOTE}{escaped}{QUOTE}"


def encode(value: Any, escape_fn: Escaper) -> str:
    """Encode one replacement value as a SQL literal."""
    if value is None:
        return sql_null()
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return sql_bool(value)
    if isinstance(value, int):
        return sql_int(value)
    if isinstance(value, float):
        return sql_float(value)
    if isinstance(value, str):
        return sql_string(value, escape_fn)
    raise EncodingError(f"unsupported replacement type {type(value).__name__}")


def unescape_for_display(encoded: str, *, backslash_escapes: bool = False) -> str:
    """
    Best-effort inverse of the string path of ``encode``.

    Strips one pair of surrounding quotes if present, then undoes quote
    doubling and (for stores that use them) backslash escapes. Smart
    punctuation normalization is not reversible. The result is for display
    only and must never be fed back into a template.
    """
    text = encoded
    if len(text) >= 2 and text[0] == QUOTE and text[-1] == QUOTE:
        text = text[1:-1]
    text = text.replace("''", "'")
    if backslash_escapes:
        text = _BACKSLASH_PATTERN.sub(
            lambda m: _BACKSLASH_SEQUENCES.get(m.group(1), m.group(1)), text
        )
    return text


def escape_for_display(value: Any) -> str:
    """HTML-escape text for presentation. None renders as an empty string."""
    if value is None:
        return ""
    return str(escape(value))
