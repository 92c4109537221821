"""
Data router: paginated rows, row count and row mutations.

GET    /api/{db}/{table}/data?page&rows&count
GET    /api/{db}/{table}/data/count
POST   /api/{db}/{table}/data?page&rows            body: {column: value, ...}
PUT    /api/{db}/{table}/data/{id}?page&rows       body: {column: value, ...}
DELETE /api/{db}/{table}/data?page&rows            body: [id, ...]

Mutations answer with the requested page (first page by default).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Query

from dbmanager.api.deps import OpContext, Page
from dbmanager.api.schemas.common import Envelope, PageEnvelope
from dbmanager.api.utils import page_payload, respond
from dbmanager.ops import data as ops
from dbmanager.ops.requests import (
    DeleteRowsRequest,
    InsertRowRequest,
    ListDataRequest,
    TableRequest,
    UpdateRowRequest,
)

router = APIRouter(prefix="/api")


@router.get("/{db}/{table}/data", response_model=PageEnvelope)
def list_data(
    ctx: OpContext,
    page: Page,
    db: str,
    table: str,
    count: bool = Query(False, description="Include the total row count"),
):
    """One page of rows ordered by id."""
    request = ListDataRequest(
        database=db, table=table, page=page.page, rows=page.rows, with_count=count
    )
    return respond(ops.list_data(ctx, request), page_payload)


@router.get("/{db}/{table}/data/count", response_model=Envelope[int])
def count_rows(ctx: OpContext, db: str, table: str):
    """Total number of rows."""
    return respond(ops.count_rows(ctx, TableRequest(database=db, table=table)))


@router.post("/{db}/{table}/data", response_model=PageEnvelope)
def insert_row(ctx: OpContext, page: Page, db: str, table: str, row: Any = Body(None)):
    """Insert one row; an empty body inserts column defaults."""
    request = InsertRowRequest(database=db, table=table, row=row, page=page.page, rows=page.rows)
    return respond(ops.insert_row(ctx, request), page_payload)


@router.put("/{db}/{table}/data/{row_id}", response_model=PageEnvelope)
def update_row(
    ctx: OpContext, page: Page, db: str, table: str, row_id: int, row: Any = Body(None)
):
    """Update the row with the given id."""
    request = UpdateRowRequest(
        database=db, table=table, row_id=row_id, row=row, page=page.page, rows=page.rows
    )
    return respond(ops.update_row(ctx, request), page_payload)


@router.delete("/{db}/{table}/data", response_model=PageEnvelope)
def delete_rows(ctx: OpContext, page: Page, db: str, table: str, ids: Any = Body(None)):
    """Delete rows by id; ids that match nothing are ignored."""
    request = DeleteRowsRequest(database=db, table=table, ids=ids, page=page.page, rows=page.rows)
    return respond(ops.delete_rows(ctx, request), page_payload)
