"""
Data operations.

Row listing, counting and mutation on any table of any configured
database.  Mutations answer with the requested page of the table.
"""

from __future__ import annotations

from dbmanager.core import data
from dbmanager.core.logging import get_logger
from dbmanager.core.types import PageResult
from dbmanager.core.validators import validate_page, validate_table_name
from dbmanager.ops.context import OperationContext
from dbmanager.ops.requests import (
    DeleteRowsRequest,
    InsertRowRequest,
    ListDataRequest,
    TableRequest,
    UpdateRowRequest,
)
from dbmanager.ops.result import OperationResult, result_from_exception, start_timer

logger = get_logger(__name__)


def list_data(ctx: OperationContext, request: ListDataRequest) -> OperationResult[PageResult]:
    """One page of rows ordered by ``id``."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        page = validate_page(request.page, request.rows)
        backend = ctx.backend(request.database)
        result = data.list_data(backend, table, page, with_count=request.with_count)
        return OperationResult.ok(result, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "list_data")


def count_rows(ctx: OperationContext, request: TableRequest) -> OperationResult[int]:
    """Row count of a table."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        backend = ctx.backend(request.database)
        return OperationResult.ok(data.count_rows(backend, table), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "count_rows")


def insert_row(ctx: OperationContext, request: InsertRowRequest) -> OperationResult[PageResult]:
    """Insert one row; returns the requested page."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        page = validate_page(request.page, request.rows)
        backend = ctx.backend(request.database)
        result = data.insert_row(backend, table, request.row, page)
        logger.info("row_inserted", backend=backend.name, table=table, request_id=ctx.request_id)
        return OperationResult.ok(result, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "insert_row")


def update_row(ctx: OperationContext, request: UpdateRowRequest) -> OperationResult[PageResult]:
    """Update one row by id; returns the requested page."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        page = validate_page(request.page, request.rows)
        backend = ctx.backend(request.database)
        result = data.update_row(backend, table, request.row_id, request.row, page)
        logger.info(
            "row_updated",
            backend=backend.name,
            table=table,
            row_id=request.row_id,
            request_id=ctx.request_id,
        )
        return OperationResult.ok(result, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "update_row")


def delete_rows(ctx: OperationContext, request: DeleteRowsRequest) -> OperationResult[PageResult]:
    """Delete rows by id; returns the requested page."""
    timer = start_timer()
    try:
        table = validate_table_name(request.table)
        page = validate_page(request.page, request.rows)
        backend = ctx.backend(request.database)
        result = data.delete_rows(backend, table, request.ids, page)
        logger.info("rows_deleted", backend=backend.name, table=table, request_id=ctx.request_id)
        return OperationResult.ok(result, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return result_from_exception(exc, timer, "delete_rows")
