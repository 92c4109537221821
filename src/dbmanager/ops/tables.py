"""
Table operations.

Thin wrappers around :mod:`dbmanager.core.schema` and the catalog that
validate identifiers and column definitions, resolve the backend and
convert errors into :class:`OperationResult` failures.
"""

from __future__ import annotations

from typing import Any

from dbmanager.core import data, schema
from dbmanager.core.validators import (
    validate_column_changes,
    validate_table_definition,
    validate_table_name,
)
from dbmanager.ops.context import OperationContext
from dbmanager.ops.requests import CreateTableRequest, TableRequest, UpdateTableRequest
from dbmanager.ops.result import OperationResult, result_from_exception, start_timer


def list_tables(ctx: OperationContext, request: TableRequest) -> OperationResult[list[str]]:
    """User tables of ``request.database``."""
    timer = start_timer()
    try:
        backend = ctx.backend(request.database)
        tables = schema.list_tables(backend)
        return OperationResult.ok(tables, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "list_tables")


def create_table(ctx: OperationContext, request: CreateTableRequest) -> OperationResult[list[str]]:
    """Create a table from a column list; returns the new table list."""
    timer = start_timer()
    try:
        definition = validate_table_definition(request.table, request.columns)
        backend = ctx.backend(request.database)
        tables = schema.create_table(backend, definition)
        return OperationResult.ok(tables, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "create_table")


def update_table_schema(
    ctx: OperationContext, request: UpdateTableRequest
) -> OperationResult[list[str]]:
    """Apply ordered column changes; returns the table list."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        changes = validate_column_changes(request.changes)
        backend = ctx.backend(request.database)
        tables = schema.update_table_schema(backend, table, changes)
        return OperationResult.ok(tables, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "update_table_schema")


def drop_table(ctx: OperationContext, request: TableRequest) -> OperationResult[list[str]]:
    """Drop a table; returns the remaining tables."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        backend = ctx.backend(request.database)
        tables = schema.drop_table(backend, table)
        return OperationResult.ok(tables, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "drop_table")


def list_columns(
    ctx: OperationContext, request: TableRequest
) -> OperationResult[list[dict[str, Any]]]:
    """Column metadata of a table in table order."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        backend = ctx.backend(request.database)
        columns = [c.to_dict() for c in data.list_columns(backend, table)]
        return OperationResult.ok(columns, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "list_columns")
