"""
Portable value types shared by the engine.

Tables handled by dbmanager are only known at request time, so nothing here
is a static model of a table.  Instead:

- :class:`ColumnType` is the portable vocabulary callers use to describe
  columns; dialects translate it to native DDL and back.
- :class:`ColumnDescriptor` / :class:`TableDescriptor` describe tables.
- A row is a plain ``dict[str, Scalar]``; :func:`to_scalar` normalizes the
  values drivers return (``Decimal``, ``datetime``, ``bytes`` ...) into
  JSON-ready scalars.
- :class:`PageRequest` / :class:`PageResult` carry pagination.

Tags:
    types, rows, pagination, dbmanager

Doc-Types:
    api-reference
"""

from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# Primary identifier every managed table carries.
ID_COLUMN = "id"

MAX_ROWS_PER_PAGE = 1000

# Bookkeeping tables of SQLite and of migration tools; never listed or managed.
SYSTEM_TABLES = frozenset(
    {"sqlite_sequence", "sqlite_stat1", "knex_migrations", "knex_migrations_lock"}
)

Scalar = int | float | str | bool | None
Row = dict[str, Scalar]


class ColumnType(str, Enum):
    """Portable column types accepted when defining tables."""

    INTEGER = "integer"
    BIGINTEGER = "biginteger"
    TEXT = "text"
    STRING = "string"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BINARY = "binary"
    JSON = "json"
    UUID = "uuid"
    # Introspection only: native type with no portable equivalent
    OTHER = "other"

    @classmethod
    def definable(cls) -> list[str]:
        """Values accepted in table definitions (everything except ``other``)."""
        return [member.value for member in cls if member is not cls.OTHER]


@dataclass(frozen=True, slots=True)
class ColumnDescriptor:
    """One column of a table.

    ``native_type``, ``nullable`` and ``primary_key`` are filled by
    introspection; callers defining a table only set ``name`` and ``type``.
    """

    name: str
    type: ColumnType
    native_type: str | None = None
    nullable: bool = True
    primary_key: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "native_type": self.native_type,
            "nullable": self.nullable,
            "primary_key": self.primary_key,
        }


@dataclass(frozen=True, slots=True)
class TableDescriptor:
    """Declarative description of a table to create."""

    name: str
    columns: tuple[ColumnDescriptor, ...]

    def has_column(self, name: str) -> bool:
        return any(column.name == name for column in self.columns)


class ChangeAction(str, Enum):
    """Kinds of column change accepted by a schema update."""

    ADD = "add"
    RENAME = "rename"
    DROP = "drop"


@dataclass(frozen=True, slots=True)
class ColumnChange:
    """One step of a schema update.

    ``type`` is required for ``add``; ``new_name`` for ``rename``.
    """

    action: ChangeAction
    name: str
    type: ColumnType | None = None
    new_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action.value, "name": self.name}
        if self.type is not None:
            result["type"] = self.type.value
        if self.new_name is not None:
            result["new_name"] = self.new_name
        return result


@dataclass(frozen=True, slots=True)
class PageRequest:
    """A 1-based page of ``rows_per_page`` rows."""

    page: int = 1
    rows_per_page: int = 30

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.rows_per_page

    @property
    def limit(self) -> int:
        return self.rows_per_page

    def total_pages(self, total_count: int) -> int:
        """Number of pages needed for ``total_count`` rows."""
        return math.ceil(total_count / self.rows_per_page)


@dataclass(slots=True)
class PageResult:
    """Rows of one page, ordered by ``id``.

    ``total_count`` stays ``None`` unless the caller asked for it; counting
    is a separate operation.
    """

    rows: list[Row]
    page: int
    rows_per_page: int
    total_count: int | None = None
    columns: list[str] = field(default_factory=list)


def to_scalar(value: Any) -> Scalar:
    """Normalize a driver value to a JSON-ready scalar.

    >>> to_scalar(Decimal("1.50"))
    1.5
    >>> to_scalar(date(2024, 1, 2))
    '2024-01-02'
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() and value.as_tuple().exponent >= 0 else float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


def normalize_row(columns: list[str], values: Any) -> Row:
    """Build an ordered row mapping from column names and a value sequence."""
    return {name: to_scalar(value) for name, value in zip(columns, values, strict=True)}


# Ordered (needle, type) pairs; first match wins.  Needles are matched
# against the lower-cased native type name.
_NATIVE_TYPE_RULES: list[tuple[str, ColumnType]] = [
    ("tinyint(1)", ColumnType.BOOLEAN),
    ("interval", ColumnType.OTHER),
    ("point", ColumnType.OTHER),
    ("bool", ColumnType.BOOLEAN),
    ("bigint", ColumnType.BIGINTEGER),
    ("bigserial", ColumnType.BIGINTEGER),
    ("serial", ColumnType.INTEGER),
    ("int", ColumnType.INTEGER),
    ("uuid", ColumnType.UUID),
    ("char(36)", ColumnType.UUID),
    ("json", ColumnType.JSON),
    ("timestamp", ColumnType.TIMESTAMP),
    ("datetime", ColumnType.DATETIME),
    ("date", ColumnType.DATE),
    ("time", ColumnType.TIME),
    ("char", ColumnType.STRING),
    ("clob", ColumnType.TEXT),
    ("text", ColumnType.TEXT),
    ("double", ColumnType.FLOAT),
    ("real", ColumnType.FLOAT),
    ("float", ColumnType.FLOAT),
    ("numeric", ColumnType.DECIMAL),
    ("decimal", ColumnType.DECIMAL),
    ("blob", ColumnType.BINARY),
    ("bytea", ColumnType.BINARY),
    ("binary", ColumnType.BINARY),
]


def portable_type(native_type: str | None) -> ColumnType:
    """Map a native column type name to the closest :class:`ColumnType`.

    >>> portable_type("character varying")
    <ColumnType.STRING: 'string'>
    >>> portable_type("INTEGER")
    <ColumnType.INTEGER: 'integer'>
    """
    if not native_type:
        # SQLite columns may be declared without a type
        return ColumnType.TEXT
    lowered = native_type.strip().lower()
    for needle, column_type in _NATIVE_TYPE_RULES:
        if needle in lowered:
            return column_type
    return ColumnType.OTHER


__all__ = [
    "ID_COLUMN",
    "MAX_ROWS_PER_PAGE",
    "SYSTEM_TABLES",
    "Scalar",
    "Row",
    "ColumnType",
    "ColumnDescriptor",
    "TableDescriptor",
    "ChangeAction",
    "ColumnChange",
    "PageRequest",
    "PageResult",
    "to_scalar",
    "normalize_row",
    "portable_type",
]
