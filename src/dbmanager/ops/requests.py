"""
Typed request objects for operations.

Each dataclass represents the *input* contract for a single operation
function.  Requests carry transport-agnostic data: identifiers and the
decoded JSON of row payloads.  Shape validation happens inside the
operation so every transport gets the same errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Database operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class RepairRequest:
    """Request for :func:`dbmanager.ops.databases.repair_databases`."""

    database: str | None = None  # ``None`` -> every registered database


# ------------------------------------------------------------------ #
# Table operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class TableRequest:
    """Identifies one table; used by list/drop/columns/count."""

    database: str
    table: str = ""


@dataclass(frozen=True, slots=True)
class CreateTableRequest:
    """Request for :func:`dbmanager.ops.tables.create_table`.

    Attributes:
        columns: ``[{"name": ..., "type": ...}, ...]`` as sent by the client.
    """

    database: str
    table: str
    columns: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UpdateTableRequest:
    """Request for :func:`dbmanager.ops.tables.update_table_schema`.

    Attributes:
        changes: ``[{"action": "add"|"rename"|"drop", "name": ..., ...}, ...]``.
    """

    database: str
    table: str
    changes: list[dict[str, Any]] = field(default_factory=list)


# ------------------------------------------------------------------ #
# Data operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListDataRequest:
    """Request for :func:`dbmanager.ops.data.list_data`."""

    database: str
    table: str
    page: int = 1
    rows: int = 30
    with_count: bool = False


@dataclass(frozen=True, slots=True)
class InsertRowRequest:
    """Request for :func:`dbmanager.ops.data.insert_row`."""

    database: str
    table: str
    row: Any = None
    page: int = 1
    rows: int = 30


@dataclass(frozen=True, slots=True)
class UpdateRowRequest:
    """Request for :func:`dbmanager.ops.data.update_row`."""

    database: str
    table: str
    row_id: Any = None
    row: Any = None
    page: int = 1
    rows: int = 30


@dataclass(frozen=True, slots=True)
class DeleteRowsRequest:
    """Request for :func:`dbmanager.ops.data.delete_rows`.

    Attributes:
        ids: Row identifiers; must be a non-empty list of integers.
    """

    database: str
    table: str
    ids: Any = None
    page: int = 1
    rows: int = 30
