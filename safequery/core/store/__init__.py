"""
Store collaborator: connect, escape, execute and read back generated ids.

No driver layer: sqlite3 ships with Python; pymysql and psycopg are installed via pip.
"""

from .connect import (
    DRIVER_ERRORS,
    connect,
    cursor_to_dicts,
    driver_message,
    execute,
    last_insert_id,
)
from .escaping import escape_string, uses_backslash_escapes, uses_hash_comments

__all__ = [
    "DRIVER_ERRORS",
    "connect",
    "cursor_to_dicts",
    "driver_message",
    "escape_string",
    "execute",
    "last_insert_id",
    "uses_backslash_escapes",
    "uses_hash_comments",
]
