"""
safequery - positional SQL templates with store-side escaping and a command guard.
"""

__version__ = "0.1.0"

from safequery.core.errors import (
    DBConnectionError,
    EncodingError,
    ExecutionError,
    GuardError,
    SafeQueryError,
    ShapeError,
    TemplateError,
)
from safequery.database import Database
from safequery.engines.sql.filters import escape_for_display
from safequery.models import CommandKind, DataSource, ProductTypeEnum, RowSet, WriteResult

__all__ = [
    "__version__",
    "CommandKind",
    "DBConnectionError",
    "DataSource",
    "Database",
    "EncodingError",
    "ExecutionError",
    "GuardError",
    "ProductTypeEnum",
    "RowSet",
    "SafeQueryError",
    "ShapeError",
    "TemplateError",
    "WriteResult",
    "escape_for_display",
]
