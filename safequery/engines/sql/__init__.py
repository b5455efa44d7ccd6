"""
SQL engine: positional templates, value encoding, statement guard, execution.

Exports: SQLTemplateEngine, StatementGuard, check_statement, encode,
escape_for_display, execute_statement, expect_single_row, parse_placeholders,
unescape_for_display.
"""

from safequery.engines.sql.executor import execute_statement, expect_single_row
from safequery.engines.sql.filters import encode, escape_for_display, unescape_for_display
from safequery.engines.sql.parser import parse_placeholders
from safequery.engines.sql.safety import StatementGuard, check_statement
from safequery.engines.sql.template_engine import SQLTemplateEngine

__all__ = [
    "SQLTemplateEngine",
    "StatementGuard",
    "check_statement",
    "encode",
    "escape_for_display",
    "execute_statement",
    "expect_single_row",
    "parse_placeholders",
    "unescape_for_display",
]
