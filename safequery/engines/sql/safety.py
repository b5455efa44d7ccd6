"""
Statement guard: classify a fully-substituted statement or refuse it.

Only SELECT, INSERT and UPDATE pass. DELETE never passes while soft deletion
is enforced (rows are retired through a status flag instead); with soft
deletion off, a DELETE passes only when it carries a LIMIT clause.

The guard reads the statement through the lexer, so keywords inside quoted
literals are ignored and keywords hidden behind comments are still seen. It
runs on the final text, so it catches hostile templates as well as hostile
values.
"""

import re

from safequery.core.config import settings
from safequery.core.errors import GuardError
from safequery.engines.sql.parser import (
    COMMENT,
    Segment,
    code_text,
    split_statements,
    tokenize,
)
from safequery.models import CommandKind

ALLOWED_COMMANDS: dict[str, CommandKind] = {
    "SELECT": CommandKind.SELECT,
    "INSERT": CommandKind.INSERT,
    "UPDATE": CommandKind.UPDATE,
}

DESTRUCTIVE_KEYWORDS = [
    "DROP",
    "TRUNCATE",
    "ALTER",
    "CREATE",
    "GRANT",
    "REVOKE",
    "RENAME",
    "OUTFILE",
    "DUMPFILE",
]

_LEADING_KEYWORD = re.compile(r"[A-Za-z_]+")
_LIMIT = re.compile(r"\bLIMIT\b", re.IGNORECASE)


def _keyword_pattern(keywords: list[str]) -> re.Pattern[str]:
    return re.compile(r"\b(" + "|".join(keywords) + r")\b", re.IGNORECASE)


class StatementGuard:
    """Allow-list check over a final statement; ``classify`` returns its CommandKind."""

    def __init__(
        self,
        *,
        soft_delete_enforced: bool | None = None,
        backslash_escapes: bool = False,
        mysql_comments: bool = False,
    ) -> None:
        if soft_delete_enforced is None:
            soft_delete_enforced = settings.SOFT_DELETE_ENFORCED
        self.soft_delete_enforced = soft_delete_enforced
        self._backslash_escapes = backslash_escapes
        self._mysql_comments = mysql_comments
        keywords = list(DESTRUCTIVE_KEYWORDS)
        if soft_delete_enforced:
            keywords.append("DELETE")
        self._destructive = _keyword_pattern(keywords)

    def _tokenize(self, statement: str) -> list[Segment]:
        return tokenize(
            statement,
            backslash_escapes=self._backslash_escapes,
            mysql_comments=self._mysql_comments,
        )

    def classify(self, statement: str) -> CommandKind:
        if not isinstance(statement, str) or not statement.strip():
            raise GuardError("empty statement")

        segments = self._tokenize(statement)
        for seg in segments:
            if not seg.closed:
                raise GuardError(f"unterminated {seg.kind} in statement")
            # MySQL runs the body of /*! ... */ as SQL.
            if seg.kind == COMMENT and seg.text.startswith("/*!"):
                raise GuardError("executable comment in statement")

        if len(split_statements(segments)) > 1:
            raise GuardError("stacked statements")

        code = re.sub(r"^[\s;]+", "", code_text(segments))
        m = _LEADING_KEYWORD.match(code)
        if m is None:
            raise GuardError("statement does not start with a command keyword")
        keyword = m.group(0).upper()

        kind = ALLOWED_COMMANDS.get(keyword)
        if keyword == "DELETE" and not self.soft_delete_enforced and _LIMIT.search(code):
            kind = CommandKind.DELETE
        if kind is None:
            raise GuardError(f"disallowed command {keyword}")

        hit = self._destructive.search(code)
        if hit is not None:
            raise GuardError(f"destructive keyword {hit.group(1).upper()} in {keyword} statement")
        return kind


def check_statement(statement: str, *, soft_delete_enforced: bool | None = None) -> CommandKind:
    """Classify with default lexing rules; raises GuardError when refused."""
    return StatementGuard(soft_delete_enforced=soft_delete_enforced).classify(statement)
