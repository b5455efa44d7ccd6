"""Unit tests for engines.sql.executor."""

import sqlite3
from unittest.mock import MagicMock

import pymysql
import pytest

from safequery.core.errors import ExecutionError, ShapeError
from safequery.engines.sql import execute_statement, expect_single_row
from safequery.models import CommandKind, ProductTypeEnum, RowSet, WriteResult

SQLITE = ProductTypeEnum.SQLITE


@pytest.fixture
def conn():
    c = sqlite3.connect(":memory:", isolation_level=None)
    c.execute("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)")
    yield c
    c.close()


class TestExecuteStatementSQLite:
    def test_insert_returns_generated_id(self, conn):
        out = execute_statement(
            conn, "INSERT INTO t (name) VALUES ('a')", CommandKind.INSERT, product_type=SQLITE
        )
        assert out == WriteResult(affected_rows=1, last_insert_id=1)

    def test_multi_row_insert_reports_last_id_only(self, conn):
        out = execute_statement(
            conn,
            "INSERT INTO t (name) VALUES ('a'), ('b'), ('c')",
            CommandKind.INSERT,
            product_type=SQLITE,
        )
        assert out.affected_rows == 3
        assert out.last_insert_id == 3

    def test_select_returns_rowset(self, conn):
        conn.execute("INSERT INTO t (name) VALUES ('a'), ('b')")
        out = execute_statement(
            conn, "SELECT id, name FROM t ORDER BY id", CommandKind.SELECT, product_type=SQLITE
        )
        assert isinstance(out, RowSet)
        assert out.row_count == 2
        assert out.rows == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]

    def test_empty_select(self, conn):
        out = execute_statement(conn, "SELECT * FROM t", CommandKind.SELECT, product_type=SQLITE)
        assert out == RowSet(rows=[], row_count=0)

    def test_update_has_no_generated_id(self, conn):
        conn.execute("INSERT INTO t (name) VALUES ('a'), ('b')")
        out = execute_statement(
            conn, "UPDATE t SET name = 'z'", CommandKind.UPDATE, product_type=SQLITE
        )
        assert out == WriteResult(affected_rows=2, last_insert_id=None)

    def test_store_error(self, conn):
        with pytest.raises(ExecutionError, match="no such table") as exc:
            execute_statement(conn, "SELECT * FROM missing", CommandKind.SELECT, product_type=SQLITE)
        assert isinstance(exc.value.__cause__, sqlite3.OperationalError)


class TestExecuteStatementMocked:
    def test_mysql_without_auto_increment(self):
        conn = MagicMock()
        cur = conn.cursor.return_value
        cur.rowcount = 1
        cur.lastrowid = 0

        out = execute_statement(
            conn, "INSERT INTO t (a) VALUES (1)", CommandKind.INSERT, product_type=ProductTypeEnum.MYSQL
        )

        assert out == WriteResult(affected_rows=1, last_insert_id=None)
        cur.execute.assert_called_once_with("INSERT INTO t (a) VALUES (1)")
        cur.close.assert_called_once()

    def test_postgres_returning_id(self):
        conn = MagicMock()
        cur = conn.cursor.return_value
        cur.rowcount = 1
        cur.description = [("id",)]
        cur.fetchall.return_value = [(7,)]

        out = execute_statement(
            conn,
            "INSERT INTO t (a) VALUES (1) RETURNING id",
            CommandKind.INSERT,
            product_type=ProductTypeEnum.POSTGRES,
        )

        assert out.last_insert_id == 7

    def test_postgres_without_returning(self):
        conn = MagicMock()
        cur = conn.cursor.return_value
        cur.rowcount = 1
        cur.description = None

        out = execute_statement(
            conn, "INSERT INTO t (a) VALUES (1)", CommandKind.INSERT, product_type=ProductTypeEnum.POSTGRES
        )

        assert out.last_insert_id is None

    def test_cursor_closed_when_execute_fails(self):
        conn = MagicMock()
        cur = conn.cursor.return_value
        cur.execute.side_effect = sqlite3.OperationalError("boom")

        with pytest.raises(ExecutionError, match="boom"):
            execute_statement(conn, "SELECT 1", CommandKind.SELECT, product_type=SQLITE)

        cur.close.assert_called_once()

    def test_driver_message_values_redacted(self):
        conn = MagicMock()
        conn.cursor.return_value.execute.side_effect = pymysql.err.IntegrityError(
            1062, "Duplicate entry 'ada@example.com' for key 'email'"
        )

        with pytest.raises(ExecutionError) as exc:
            execute_statement(
                conn, "INSERT INTO t (a) VALUES ('x')", CommandKind.INSERT, product_type=ProductTypeEnum.MYSQL
            )

        assert exc.value.detail == "IntegrityError: (1062) Duplicate entry '?' for key '?'"

    def test_executes_exactly_once(self):
        conn = MagicMock()
        cur = conn.cursor.return_value
        cur.description = [("n",)]
        cur.fetchall.return_value = [(1,)]

        execute_statement(conn, "SELECT 1 AS n", CommandKind.SELECT, product_type=SQLITE)

        cur.execute.assert_called_once_with("SELECT 1 AS n")


class TestExpectSingleRow:
    def test_one_row(self):
        rs = RowSet(rows=[{"id": 1, "name": "a"}], row_count=1)
        assert expect_single_row(rs) == {"id": 1, "name": "a"}

    def test_column(self):
        rs = RowSet(rows=[{"id": 1, "name": "a"}], row_count=1)
        assert expect_single_row(rs, "name") == "a"

    def test_missing_column(self):
        rs = RowSet(rows=[{"id": 1}], row_count=1)
        with pytest.raises(ShapeError, match="column 'name'"):
            expect_single_row(rs, "name")

    def test_zero_rows(self):
        with pytest.raises(ShapeError, match="expected exactly one row, found 0"):
            expect_single_row(RowSet())

    def test_two_rows(self):
        rs = RowSet(rows=[{"id": 1}, {"id": 2}], row_count=2)
        with pytest.raises(ShapeError, match="expected exactly one row, found 2"):
            expect_single_row(rs)

    def test_write_result(self):
        with pytest.raises(ShapeError, match="expected a row set"):
            expect_single_row(WriteResult(affected_rows=1))
