"""
DB connection helpers for the single store a Database owns.

Uses sqlite3 (SQLite), pymysql (MySQL) or psycopg (PostgreSQL) based on product_type.
Connections are opened in autocommit mode: no transaction management at this layer.
"""

import sqlite3
from typing import Any

import psycopg
import pymysql

from safequery.core.config import settings
from safequery.models import DataSource, ProductTypeEnum

# Everything a driver may raise while connecting or executing.
DRIVER_ERRORS: tuple[type[Exception], ...] = (sqlite3.Error, pymysql.Error, psycopg.Error)

_DEFAULT_PORTS = {
    ProductTypeEnum.MYSQL: 3306,
    ProductTypeEnum.POSTGRES: 5432,
}


def connect(datasource: DataSource) -> Any:
    """
    Open a connection to the store described by *datasource*.

    Raises the driver's own error on failure; callers translate it.
    """
    pt = datasource.product_type
    timeout = settings.DB_CONNECT_TIMEOUT

    if pt == ProductTypeEnum.SQLITE:
        return sqlite3.connect(
            datasource.database,
            timeout=timeout,
            isolation_level=None,
        )
    port = int(datasource.port or _DEFAULT_PORTS[pt])
    if pt == ProductTypeEnum.MYSQL:
        return pymysql.connect(
            host=datasource.host,
            port=port,
            database=datasource.database,
            user=datasource.username,
            password=datasource.password,
            charset="utf8mb4",
            autocommit=True,
            connect_timeout=timeout,
        )
    if pt == ProductTypeEnum.POSTGRES:
        return psycopg.connect(
            host=datasource.host,
            port=port,
            dbname=datasource.database,
            user=datasource.username,
            password=datasource.password,
            autocommit=True,
            connect_timeout=timeout,
        )
    raise ValueError(f"Unsupported product_type: {pt}")


def execute(conn: Any, sql: str) -> Any:
    """
    Execute final SQL (no parameter binding) and return the cursor.

    The cursor is closed here if execution fails; otherwise the caller owns it.
    """
    cur = conn.cursor()
    try:
        cur.execute(sql)
    except BaseException:
        cur.close()
        raise
    return cur


def driver_message(error: Exception) -> str:
    """Plain text of a driver error; pymysql's str() is the repr of (code, message)."""
    if isinstance(error, pymysql.Error) and len(error.args) == 2:
        code, message = error.args
        return f"({code}) {message}"
    return str(error)


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts. Works for sqlite3, psycopg and pymysql."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def last_insert_id(cursor: Any, product_type: ProductTypeEnum) -> int | None:
    """
    Generated id of the last inserted row, or None.

    PostgreSQL has no implicit last id: the first column of the last row of a
    ``RETURNING`` clause is used when the INSERT has one.
    """
    if product_type == ProductTypeEnum.POSTGRES:
        if not cursor.description:
            return None
        rows = cursor.fetchall()
        return rows[-1][0] if rows else None
    # pymysql reports 0 when the table has no AUTO_INCREMENT column
    return cursor.lastrowid or None
