"""
Canonical string-literal escaping per store.

Each store's own rule is used: pymysql's ``Connection.escape_string`` (honours
NO_BACKSLASH_ESCAPES), libpq's ``PQescapeStringConn`` for the connection's
client encoding, and quote doubling for SQLite. Output is the literal body
only; the caller adds the surrounding quotes.
"""

from typing import Any

from psycopg.pq import Escaping
from pymysql.constants import SERVER_STATUS

from safequery.core.errors import EncodingError
from safequery.models import ProductTypeEnum

_SQL_QUOTE_ESCAPE = str.maketrans({"'": "''"})


def escape_string(conn: Any, value: str, *, product_type: ProductTypeEnum) -> str:
    """Escape *value* for use inside a single-quoted literal on *conn*."""
    if product_type in (ProductTypeEnum.SQLITE, ProductTypeEnum.POSTGRES) and "\x00" in value:
        raise EncodingError(f"NUL character cannot be stored in {product_type.value} text")

    if product_type == ProductTypeEnum.SQLITE:
        return value.translate(_SQL_QUOTE_ESCAPE)
    if product_type == ProductTypeEnum.MYSQL:
        return conn.escape_string(value)
    if product_type == ProductTypeEnum.POSTGRES:
        encoding = conn.info.encoding
        try:
            raw = value.encode(encoding)
        except UnicodeEncodeError as e:
            raise EncodingError(f"value not representable in {encoding}: {e}") from e
        return Escaping(conn.pgconn).escape_string(raw).decode(encoding)
    raise ValueError(f"Unsupported product_type: {product_type}")


def uses_backslash_escapes(conn: Any, product_type: ProductTypeEnum) -> bool:
    """True if a backslash inside a plain '...' literal escapes the next character."""
    if product_type == ProductTypeEnum.MYSQL:
        return not (conn.server_status & SERVER_STATUS.SERVER_STATUS_NO_BACKSLASH_ESCAPES)
    if product_type == ProductTypeEnum.POSTGRES:
        return conn.info.parameter_status("standard_conforming_strings") == "off"
    return False


def uses_hash_comments(product_type: ProductTypeEnum) -> bool:
    """MySQL also treats ``#`` as a line comment."""
    return product_type == ProductTypeEnum.MYSQL
