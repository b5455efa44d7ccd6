"""
Database: the caller-facing surface.

query(template, replacements) -> substitute -> guard -> execute -> RowSet | WriteResult

Every failure is logged with its full diagnostic (category "database") and
re-raised to the caller as a fresh error of the same class carrying only a
generic message. Each instance owns one connection, opened on construction and
released once by close() / the context manager.
"""

import logging
from collections.abc import Callable
from functools import partial
from typing import Any

from safequery.core.config import settings
from safequery.core.errors import (
    DBConnectionError,
    ExecutionError,
    SafeQueryError,
    ShapeError,
)
from safequery.core.store import (
    DRIVER_ERRORS,
    connect,
    driver_message,
    escape_string,
    uses_backslash_escapes,
    uses_hash_comments,
)
from safequery.engines.sql import (
    SQLTemplateEngine,
    StatementGuard,
    execute_statement,
    expect_single_row,
)
from safequery.engines.sql import filters
from safequery.engines.sql.parser import redact, redact_message, tokenize
from safequery.engines.sql.template_engine import Replacements
from safequery.models import CommandKind, DataSource, ProductTypeEnum, QueryResult

_log = logging.getLogger(__name__)


class Database:
    """
    Database(datasource=None, *, database=None, soft_delete_enforced=None, logger=None)

    - datasource: connection parameters; defaults to ``settings.default_datasource()``.
    - database: use another database on the same server.
    - soft_delete_enforced: guard policy; defaults to ``settings.SOFT_DELETE_ENFORCED``.
    - logger: where error events go; defaults to this module's logger.

    Not thread-safe: give each thread its own instance.
    """

    def __init__(
        self,
        datasource: DataSource | None = None,
        *,
        database: str | None = None,
        soft_delete_enforced: bool | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or _log
        self._conn: Any = None
        if datasource is None:
            datasource = settings.default_datasource(database)
        elif database is not None:
            datasource = datasource.model_copy(update={"database": database})
        self.product_type: ProductTypeEnum = datasource.product_type
        self.soft_delete_enforced = (
            settings.SOFT_DELETE_ENFORCED if soft_delete_enforced is None else soft_delete_enforced
        )

        failure: SafeQueryError | None = None
        try:
            self._conn = connect(datasource)
        except (*DRIVER_ERRORS, OSError) as e:
            failure = DBConnectionError(
                f"connect to {self.product_type.value} database "
                f"{datasource.database!r} failed: {type(e).__name__}: {e}"
            )
        if failure is not None:
            self._report(failure)
            raise failure.public()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.close()
        except DRIVER_ERRORS as e:
            self._logger.warning("Database close failed: %s", e)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def query(self, template: str, replacements: Replacements = ()) -> QueryResult:
        """
        Substitute, check and execute *template*.

        Returns RowSet for SELECT, WriteResult for INSERT/UPDATE.
        """
        return self._guarded(template, lambda: self._run(template, replacements))

    def query_single_row(
        self,
        template: str,
        replacements: Replacements = (),
        column: str | None = None,
    ) -> Any:
        """
        Like query(), but the result must be exactly one row: returns that row
        as a dict, or the value of *column* when given. Raises ShapeError otherwise.
        """
        return self._guarded(
            template,
            lambda: expect_single_row(
                self._run(template, replacements, rows_expected=True), column
            ),
        )

    def unescape_for_display(self, encoded: str) -> str:
        """Best-effort inverse of string encoding, for re-presenting stored text only."""
        if self._conn is not None:
            backslash = uses_backslash_escapes(self._conn, self.product_type)
        else:
            backslash = self.product_type == ProductTypeEnum.MYSQL
        return filters.unescape_for_display(encoded, backslash_escapes=backslash)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _run(
        self, template: str, replacements: Replacements, rows_expected: bool = False
    ) -> QueryResult:
        if self._conn is None:
            raise DBConnectionError("query on a closed Database")
        conn = self._conn
        pt = self.product_type
        backslash = uses_backslash_escapes(conn, pt)
        mysql_comments = uses_hash_comments(pt)

        engine = SQLTemplateEngine(
            partial(escape_string, conn, product_type=pt),
            backslash_escapes=backslash,
            mysql_comments=mysql_comments,
        )
        statement = engine.substitute(template, replacements)

        guard = StatementGuard(
            soft_delete_enforced=self.soft_delete_enforced,
            backslash_escapes=backslash,
            mysql_comments=mysql_comments,
        )
        kind = guard.classify(statement)
        if rows_expected and kind != CommandKind.SELECT:
            raise ShapeError(f"single-row query needs a SELECT, got {kind.value}")

        result = execute_statement(conn, statement, kind, product_type=pt)
        self._logger.debug(
            "Executed %s: %s",
            kind.value,
            redact(tokenize(statement, backslash_escapes=backslash, mysql_comments=mysql_comments)),
        )
        return result

    def _guarded(self, template: str, call: Callable[[], Any]) -> Any:
        failure: SafeQueryError
        try:
            return call()
        except SafeQueryError as e:
            failure = e
        except DRIVER_ERRORS as e:
            failure = ExecutionError(f"{type(e).__name__}: {redact_message(driver_message(e))}")
            failure.__cause__ = e
        self._report(failure, template)
        raise failure.public()

    def _report(self, failure: SafeQueryError, template: Any = None) -> None:
        detail = failure.detail or failure.public_message
        if template is None:
            shown = "-"
        elif isinstance(template, str):
            shown = redact(tokenize(template))
        else:
            shown = f"<{type(template).__name__}>"
        self._logger.error(
            "%s: %s (template: %s)",
            type(failure).__name__,
            detail,
            shown,
            extra={"category": failure.category, "detail": detail},
            exc_info=failure,
        )
