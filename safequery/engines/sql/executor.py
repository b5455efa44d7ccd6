"""
Execute a guard-approved statement against the store.

Returns RowSet for SELECT, WriteResult (affected rows + generated id) for
INSERT/UPDATE/DELETE. Executes exactly once: statements are not assumed to be
idempotent, so nothing is retried.
"""

from typing import Any

from safequery.core.errors import ExecutionError, ShapeError
from safequery.core.store import (
    DRIVER_ERRORS,
    cursor_to_dicts,
    driver_message,
    execute,
    last_insert_id,
)
from safequery.engines.sql.parser import redact_message
from safequery.models import CommandKind, ProductTypeEnum, QueryResult, RowSet, WriteResult


def execute_statement(
    conn: Any,
    statement: str,
    kind: CommandKind,
    *,
    product_type: ProductTypeEnum,
) -> QueryResult:
    """Run *statement* once on *conn* and normalise the outcome."""
    try:
        cur = execute(conn, statement)
    except DRIVER_ERRORS as e:
        raise ExecutionError(f"{type(e).__name__}: {redact_message(driver_message(e))}") from e

    try:
        if kind == CommandKind.SELECT:
            rows = cursor_to_dicts(cur)
            return RowSet(rows=rows, row_count=len(rows))
        affected = cur.rowcount if cur.rowcount is not None and cur.rowcount >= 0 else 0
        new_id = last_insert_id(cur, product_type) if kind == CommandKind.INSERT else None
        return WriteResult(affected_rows=affected, last_insert_id=new_id)
    except DRIVER_ERRORS as e:
        raise ExecutionError(
            f"{type(e).__name__} reading result: {redact_message(driver_message(e))}"
        ) from e
    finally:
        cur.close()


def expect_single_row(result: QueryResult, column: str | None = None) -> Any:
    """
    The one row of *result* (or one column of it).

    Raises ShapeError unless *result* is a RowSet holding exactly one row.
    """
    if not isinstance(result, RowSet):
        raise ShapeError("expected a row set, statement returned no rows")
    if result.row_count != 1:
        raise ShapeError(f"expected exactly one row, found {result.row_count}")
    row = result.rows[0]
    if column is None:
        return row
    if column not in row:
        raise ShapeError(f"column {column!r} not in result")
    return row[column]
