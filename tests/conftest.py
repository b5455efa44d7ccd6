"""
Pytest configuration and shared fixtures.
"""

import sqlite3
from functools import partial

import pytest
from pymysql.converters import escape_string as mysql_escape

from safequery import Database, DataSource
from safequery.core.store import escape_string
from safequery.models import ProductTypeEnum


@pytest.fixture
def sqlite_escape():
    """SQLite's canonical escaper (no connection needed)."""
    return partial(escape_string, None, product_type=ProductTypeEnum.SQLITE)


@pytest.fixture
def mysql_escape_fn():
    """pymysql's escaper, as used on a server without NO_BACKSLASH_ESCAPES."""
    return mysql_escape


@pytest.fixture
def sqlite_path(tmp_path):
    """
    SQLite file with a ``people`` table (Ada, Grace, Grace) and an untyped
    ``samples`` table that keeps every value's storage class as inserted.
    """
    path = tmp_path / "safequery.sqlite"
    conn = sqlite3.connect(str(path))
    conn.execute(
        """
        CREATE TABLE people (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT,
            active BOOLEAN NOT NULL DEFAULT 1
        )
        """
    )
    conn.execute("CREATE TABLE samples (id INTEGER PRIMARY KEY AUTOINCREMENT, value)")
    conn.executemany(
        "INSERT INTO people (name) VALUES (?)",
        [("Ada",), ("Grace",), ("Grace",)],
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def db(sqlite_path):
    database = Database(DataSource(database=str(sqlite_path)))
    yield database
    database.close()


def pytest_make_parametrize_id(config, val, argname):
    """Give huge ints a short id; str() on them exceeds Python's digit limit."""
    if isinstance(val, int) and not isinstance(val, bool) and val.bit_length() > 64:
        return f"{argname}-{'neg' if val < 0 else 'pos'}-{val.bit_length()}bits"
    return None
