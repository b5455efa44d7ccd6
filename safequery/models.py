"""
Models shared across safequery.

Enums: ProductTypeEnum, CommandKind.
Schemas: DataSource (connection parameters), RowSet and WriteResult (query results).
"""

from enum import Enum
from typing import Any

from pydantic import Field, model_validator
from sqlmodel import SQLModel

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProductTypeEnum(str, Enum):
    """Supported database product types (sqlite, mysql, postgres)."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"


class CommandKind(str, Enum):
    """Leading command of a guard-approved statement."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ---------------------------------------------------------------------------
# DataSource
# ---------------------------------------------------------------------------


class DataSource(SQLModel):
    """Connection parameters for the single store a Database talks to."""

    product_type: ProductTypeEnum = ProductTypeEnum.SQLITE
    host: str | None = Field(default=None, max_length=255)
    port: int | None = Field(default=None, ge=1, le=65535)
    database: str = Field(..., min_length=1, max_length=1024)
    username: str | None = Field(default=None, max_length=255)
    password: str = Field(
        default="", max_length=512, description="Optional; leave empty for no password."
    )

    @model_validator(mode="after")
    def network_store_requires_host(self) -> "DataSource":
        if self.product_type != ProductTypeEnum.SQLITE:
            for name in ("host", "username"):
                if not getattr(self, name):
                    raise ValueError(
                        f"{name} is required for {self.product_type.value} datasources"
                    )
        return self


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class RowSet(SQLModel):
    """Outcome of a SELECT: ordered rows keyed by column name."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0


class WriteResult(SQLModel):
    """
    Outcome of an INSERT/UPDATE (or DELETE under the permissive policy).

    last_insert_id is only meaningful for single-row INSERT; a multi-row INSERT
    reports the id of the final row only.
    """

    affected_rows: int = 0
    last_insert_id: int | None = None


QueryResult = RowSet | WriteResult
