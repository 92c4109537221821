"""
Schema operations.

Create, alter and drop tables from declarative column lists.  Every
operation returns the fresh table list of the backend so a client can
redraw its table view from the response alone.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import text

from dbmanager.core.backends import Backend
from dbmanager.core.catalog import CatalogInspector
from dbmanager.core.errors import AlreadyExistsError, DbManagerError, NotFoundError, SchemaError
from dbmanager.core.logging import get_logger
from dbmanager.core.types import (
    ID_COLUMN,
    SYSTEM_TABLES,
    ChangeAction,
    ColumnChange,
    ColumnDescriptor,
    ColumnType,
    TableDescriptor,
)

logger = get_logger(__name__)


def list_tables(backend: Backend) -> list[str]:
    """User tables of the backend; the catalog is queried on every call."""
    return CatalogInspector(backend).list_tables()


def create_table(backend: Backend, table: TableDescriptor) -> list[str]:
    """Create ``table``, synthesizing ``id`` as the first column if absent.

    Raises:
        SchemaError: No columns, or a column type the dialect cannot express.
        AlreadyExistsError: A table with that name exists.
    """
    if not table.columns:
        raise SchemaError("A table needs at least one column").with_context(
            backend=backend.name, table=table.name
        )
    columns: tuple[ColumnDescriptor, ...] = table.columns
    if not table.has_column(ID_COLUMN):
        columns = (ColumnDescriptor(ID_COLUMN, ColumnType.INTEGER), *columns)

    # Translating first keeps unsupported types from reaching the backend
    statement = backend.dialect.create_table(table.name, columns)

    inspector = CatalogInspector(backend)
    if inspector.table_exists(table.name):
        raise AlreadyExistsError(f"Table '{table.name}' already exists").with_context(
            backend=backend.name, table=table.name
        )
    with backend.transaction() as conn:
        conn.execute(text(statement))
    logger.info("table_created", backend=backend.name, table=table.name, columns=len(columns))
    return inspector.list_tables()


def drop_table(backend: Backend, name: str) -> list[str]:
    """Drop a user table.

    Raises:
        NotFoundError: The table does not exist or is a system table.
    """
    inspector = CatalogInspector(backend)
    if name in SYSTEM_TABLES or not inspector.table_exists(name):
        raise NotFoundError(f"Table '{name}' does not exist").with_context(
            backend=backend.name, table=name
        )
    with backend.transaction() as conn:
        conn.execute(text(backend.dialect.drop_table(name)))
    logger.info("table_dropped", backend=backend.name, table=name)
    return inspector.list_tables()


def _check_change(change: ColumnChange, existing: set[str]) -> None:
    """Reject changes that are invalid against the current columns."""
    if ID_COLUMN in (change.name, change.new_name):
        raise SchemaError(f"Column '{ID_COLUMN}' is managed by dbmanager and cannot be changed")
    if change.action is ChangeAction.ADD:
        if change.name in existing:
            raise SchemaError(f"Column '{change.name}' already exists")
        return
    if change.name not in existing:
        raise SchemaError(f"Column '{change.name}' does not exist")
    if change.action is ChangeAction.RENAME and change.new_name in existing:
        raise SchemaError(f"Column '{change.new_name}' already exists")


def _statement(backend: Backend, table: str, change: ColumnChange) -> str:
    dialect = backend.dialect
    match change.action:
        case ChangeAction.ADD:
            if change.type is None:
                raise SchemaError(f"Column '{change.name}' needs a type to be added")
            return dialect.add_column(table, ColumnDescriptor(change.name, change.type))
        case ChangeAction.RENAME:
            if change.new_name is None:
                raise SchemaError(f"Column '{change.name}' needs a new name to be renamed")
            return dialect.rename_column(table, change.name, change.new_name)
        case ChangeAction.DROP:
            return dialect.drop_column(table, change.name)


def update_table_schema(
    backend: Backend, name: str, changes: Sequence[ColumnChange]
) -> list[str]:
    """Apply column changes in order, each as its own statement.

    The first failing change stops the sequence.  Changes applied before it
    stay applied; the raised :class:`SchemaError` lists them under
    ``details["applied"]`` and the failing one under ``details["failed"]``.

    Raises:
        NotFoundError: The table does not exist.
        SchemaError: A change was invalid or rejected by the backend.
    """
    inspector = CatalogInspector(backend)
    if name in SYSTEM_TABLES:
        raise NotFoundError(f"Table '{name}' does not exist").with_context(
            backend=backend.name, table=name
        )
    existing = {c.name for c in inspector.list_columns(name)}
    applied: list[ColumnChange] = []

    for change in changes:
        try:
            _check_change(change, existing)
            statement = _statement(backend, name, change)
            with backend.transaction() as conn:
                conn.execute(text(statement))
        except DbManagerError as exc:
            logger.warning(
                "schema_change_failed",
                backend=backend.name,
                table=name,
                change=change.to_dict(),
                applied=len(applied),
                error=exc.message,
            )
            raise SchemaError(
                f"Column change '{change.action.value} {change.name}' failed: {exc.message}",
                details={
                    "applied": [c.to_dict() for c in applied],
                    "failed": change.to_dict(),
                },
                cause=exc.cause or exc,
            ).with_context(backend=backend.name, table=name) from exc

        applied.append(change)
        if change.action is ChangeAction.ADD:
            existing.add(change.name)
        elif change.action is ChangeAction.RENAME:
            existing.discard(change.name)
            existing.add(change.new_name or change.name)
        else:
            existing.discard(change.name)

    logger.info("table_altered", backend=backend.name, table=name, changes=len(applied))
    return inspector.list_tables()


__all__ = [
    "list_tables",
    "create_table",
    "drop_table",
    "update_table_schema",
]
