"""
Literal- and comment-aware scanning of SQL text.

The template engine and the guard never look at raw text: they look at the
segments produced here, so a keyword or delimiter inside a quoted literal is
never mistaken for statement structure.

Handles single-quoted literals (``''`` doubling, backslash escapes when the
store uses them, PostgreSQL ``E'...'``), ``--`` and ``/* */`` comments, and the
MySQL comment forms (``#``, ``--`` only when followed by whitespace).
"""

import re
from typing import NamedTuple

CODE = "code"
LITERAL = "literal"
COMMENT = "comment"

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]*)\}")
INDEX_PATTERN = re.compile(r"[0-9]+")

# 'value' (with '' doubling) or "value" inside a driver error message.
_QUOTED_IN_MESSAGE = re.compile(r"'(?:[^']|'')*'|\"[^\"]*\"")
_KEY_VALUE_IN_MESSAGE = re.compile(r"\)=\([^)]*\)")


class Segment(NamedTuple):
    kind: str
    text: str
    closed: bool = True


def _is_escape_string_prefix(sql: str, quote_pos: int) -> bool:
    """True for ``E'...'``: a lone E/e directly before the quote."""
    if quote_pos == 0 or sql[quote_pos - 1] not in "eE":
        return False
    if quote_pos == 1:
        return True
    before = sql[quote_pos - 2]
    return not (before.isalnum() or before == "_")


def _scan_literal(sql: str, start: int, backslash_escapes: bool) -> tuple[int, bool]:
    """Return (end index, closed) for the literal whose opening quote is at *start*."""
    length = len(sql)
    i = start + 1
    while i < length:
        c = sql[i]
        if backslash_escapes and c == "\\":
            i += 2
            continue
        if c == "'":
            if i + 1 < length and sql[i + 1] == "'":
                i += 2
                continue
            return i + 1, True
        i += 1
    return length, False


def _starts_line_comment(sql: str, i: int, mysql_comments: bool) -> bool:
    ch = sql[i]
    if mysql_comments and ch == "#":
        return True
    if ch != "-" or not sql.startswith("--", i):
        return False
    if not mysql_comments:
        return True
    # MySQL needs whitespace (or end of input) after "--"; "1--1" is arithmetic.
    return i + 2 >= len(sql) or sql[i + 2].isspace()


def tokenize(
    sql: str,
    *,
    backslash_escapes: bool = False,
    mysql_comments: bool = False,
) -> list[Segment]:
    """Split *sql* into code, literal and comment segments (in order, lossless)."""
    segments: list[Segment] = []
    code: list[str] = []
    i = 0
    length = len(sql)

    def flush_code() -> None:
        if code:
            segments.append(Segment(CODE, "".join(code)))
            code.clear()

    while i < length:
        ch = sql[i]

        if ch == "'":
            escapes = backslash_escapes or _is_escape_string_prefix(sql, i)
            end, closed = _scan_literal(sql, i, escapes)
            flush_code()
            segments.append(Segment(LITERAL, sql[i:end], closed))
            i = end
            continue

        if _starts_line_comment(sql, i, mysql_comments):
            end = sql.find("\n", i)
            end = length if end == -1 else end + 1
            flush_code()
            segments.append(Segment(COMMENT, sql[i:end]))
            i = end
            continue

        if ch == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            flush_code()
            if end == -1:
                segments.append(Segment(COMMENT, sql[i:], False))
                i = length
            else:
                segments.append(Segment(COMMENT, sql[i : end + 2]))
                i = end + 2
            continue

        code.append(ch)
        i += 1

    flush_code()
    return segments


def code_text(segments: list[Segment]) -> str:
    """Code only: every literal collapses to ``''`` and every comment to a space."""
    parts = []
    for seg in segments:
        if seg.kind == CODE:
            parts.append(seg.text)
        elif seg.kind == LITERAL:
            parts.append("''")
        else:
            parts.append(" ")
    return "".join(parts)


def split_statements(segments: list[Segment]) -> list[str]:
    """
    Split on ``;`` in code position. Statements holding only whitespace or
    comments are dropped, so a trailing ``;`` does not count as a statement.
    """
    stmts: list[str] = []
    current: list[str] = []
    has_content = False

    for seg in segments:
        if seg.kind != CODE:
            current.append(seg.text)
            has_content = has_content or seg.kind == LITERAL
            continue
        pieces = seg.text.split(";")
        for n, piece in enumerate(pieces):
            if n > 0:
                if has_content:
                    stmts.append("".join(current).strip())
                current = []
                has_content = False
            current.append(piece)
            has_content = has_content or bool(piece.strip())

    if has_content:
        stmts.append("".join(current).strip())
    return stmts


def redact(segments: list[Segment]) -> str:
    """Statement text safe for logs: every literal becomes ``'?'``."""
    return "".join("'?'" if seg.kind == LITERAL else seg.text for seg in segments)


def redact_message(message: str) -> str:
    """
    Driver error text safe for logs. MySQL quotes offending values
    ("Duplicate entry 'x'", "near '...'"), PostgreSQL puts them in
    ``"..."`` or ``Key (col)=(value)``; all of those become ``?``.
    """
    message = _QUOTED_IN_MESSAGE.sub(lambda m: m.group(0)[0] + "?" + m.group(0)[0], message)
    return _KEY_VALUE_IN_MESSAGE.sub(")=(?)", message)


def find_placeholders(segments: list[Segment], kind: str = CODE) -> list[str]:
    """Raw contents of every ``{...}`` found in segments of *kind*."""
    found: list[str] = []
    for seg in segments:
        if seg.kind == kind:
            found.extend(m.group(1) for m in PLACEHOLDER_PATTERN.finditer(seg.text))
    return found


def parse_placeholders(template: str) -> list[int]:
    """Sorted distinct indices of the well-formed ``{i}`` placeholders in *template*."""
    tokens = find_placeholders(tokenize(template))
    return sorted({int(t) for t in tokens if INDEX_PATTERN.fullmatch(t)})
