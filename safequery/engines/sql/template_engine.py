"""
Positional SQL template engine.

Renders ``{0}``, ``{1}``, ... placeholders with encoded replacement values.

Security: values are encoded by ``filters.encode`` (store escaper, quoted), and
placeholders are only substituted in code position of the template. After
substitution the output is scanned again on its own: an unterminated literal,
a stray ``"`` or backtick, or a leftover placeholder in code position means
either the template bypasses the encoder or the encoder is broken, and the
statement is refused. So is any output whose comment or literal segments differ
from the template's (plus one literal per string value).
"""

from collections.abc import Mapping, Sequence
from typing import Any

from safequery.core.errors import TemplateError
from safequery.engines.sql.filters import QUOTE, Escaper, encode
from safequery.engines.sql.parser import (
    CODE,
    COMMENT,
    INDEX_PATTERN,
    LITERAL,
    PLACEHOLDER_PATTERN,
    Segment,
    find_placeholders,
    parse_placeholders,
    tokenize,
)

Replacements = Sequence[Any] | Mapping[int, Any]

_STRAY_DELIMITERS = ('"', "`")


def _count(segments: list[Segment], kind: str) -> int:
    return sum(1 for seg in segments if seg.kind == kind)


def _normalize_replacements(replacements: Any) -> list[Any]:
    """List of values indexed 0..n-1, from a list/tuple or an int-keyed mapping."""
    if isinstance(replacements, (list, tuple)):
        return list(replacements)
    if isinstance(replacements, Mapping):
        keys = list(replacements.keys())
        for k in keys:
            if not isinstance(k, int) or isinstance(k, bool):
                raise TemplateError(f"replacement index {k!r} is not an integer")
        if sorted(keys) != list(range(len(keys))):
            raise TemplateError(
                f"replacement indices must be contiguous from 0, got {sorted(keys)}"
            )
        return [replacements[i] for i in range(len(keys))]
    raise TemplateError(
        f"replacements must be a list, tuple or int-keyed mapping, not {type(replacements).__name__}"
    )


class SQLTemplateEngine:
    """Substitutes positional placeholders and checks the result's structure."""

    def __init__(
        self,
        escape_fn: Escaper,
        *,
        backslash_escapes: bool = False,
        mysql_comments: bool = False,
    ) -> None:
        self._escape = escape_fn
        self._backslash_escapes = backslash_escapes
        self._mysql_comments = mysql_comments

    def _tokenize(self, sql: str) -> list[Segment]:
        return tokenize(
            sql,
            backslash_escapes=self._backslash_escapes,
            mysql_comments=self._mysql_comments,
        )

    def substitute(self, template: str, replacements: Replacements = ()) -> str:
        """Render *template* with *replacements* to a final SQL string."""
        if not isinstance(template, str):
            raise TemplateError(f"template must be a string, not {type(template).__name__}")
        values = _normalize_replacements(replacements)
        literals = [encode(v, self._escape) for v in values]

        segments = self._tokenize(template)
        for kind, where in ((LITERAL, "a quoted literal"), (COMMENT, "a comment")):
            for token in find_placeholders(segments, kind):
                if INDEX_PATTERN.fullmatch(token):
                    raise TemplateError(f"placeholder {{{token}}} inside {where}")

        substituted: list[int] = []

        def replace(match: Any) -> str:
            token = match.group(1)
            if not INDEX_PATTERN.fullmatch(token):
                raise TemplateError(f"malformed placeholder {{{token}}}")
            idx = int(token)
            if idx >= len(literals):
                raise TemplateError(
                    f"missing replacement for placeholder {{{idx}}} ({len(literals)} given)"
                )
            substituted.append(idx)
            return literals[idx]

        statement = "".join(
            PLACEHOLDER_PATTERN.sub(replace, seg.text) if seg.kind == CODE else seg.text
            for seg in segments
        )

        unused = sorted(set(range(len(literals))) - set(substituted))
        if unused:
            raise TemplateError(f"replacement {unused[0]} is not referenced by the template")

        inserted = sum(1 for idx in substituted if literals[idx].startswith(QUOTE))
        self.check_structure(
            statement,
            literals=_count(segments, LITERAL) + inserted,
            comments=_count(segments, COMMENT),
        )
        return statement

    def check_structure(
        self,
        statement: str,
        *,
        literals: int | None = None,
        comments: int | None = None,
    ) -> None:
        """
        Raise TemplateError if *statement* has anything outside the substitution mechanism.

        When *literals* / *comments* are given, the statement must hold exactly
        that many literal / comment segments: each string value adds one
        literal, and no value may add a comment or merge two literals.
        """
        segments = self._tokenize(statement)
        for seg in segments:
            if not seg.closed:
                raise TemplateError(f"unterminated {seg.kind} in statement")
            if seg.kind != CODE:
                continue
            for delim in _STRAY_DELIMITERS:
                if delim in seg.text:
                    raise TemplateError(f"stray {delim} outside a quoted literal")
        leftover = find_placeholders(segments)
        if leftover:
            raise TemplateError(f"missing replacement for placeholder {{{leftover[0]}}}")
        for kind, expected in ((LITERAL, literals), (COMMENT, comments)):
            found = _count(segments, kind)
            if expected is not None and found != expected:
                raise TemplateError(
                    f"substitution changed statement structure: "
                    f"{found} {kind} segments, expected {expected}"
                )

    def parse_parameters(self, template: str) -> list[int]:
        """Sorted distinct placeholder indices referenced by *template*."""
        return parse_placeholders(template)
