"""
Table router: list, create, alter and drop tables; list columns.

GET    /api/{db}/table
POST   /api/{db}/{table}
PUT    /api/{db}/{table}
DELETE /api/{db}/{table}
GET    /api/{db}/{table}/column

Every mutation answers with the fresh table list of the database.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from dbmanager.api.deps import OpContext
from dbmanager.api.schemas.common import Envelope
from dbmanager.api.schemas.tables import CreateTableBody, UpdateTableBody
from dbmanager.api.utils import respond
from dbmanager.ops import tables as ops
from dbmanager.ops.requests import CreateTableRequest, TableRequest, UpdateTableRequest

router = APIRouter(prefix="/api")


@router.get("/{db}/table", response_model=Envelope[list[str]])
def list_tables(ctx: OpContext, db: str):
    """User tables of a database, sorted by name."""
    return respond(ops.list_tables(ctx, TableRequest(database=db)))


@router.post("/{db}/{table}", response_model=Envelope[list[str]])
def create_table(ctx: OpContext, db: str, table: str, body: CreateTableBody):
    """Create a table; an auto-increment ``id`` is added when not declared."""
    request = CreateTableRequest(database=db, table=table, columns=body.columns())
    return respond(ops.create_table(ctx, request))


@router.put("/{db}/{table}", response_model=Envelope[list[str]])
def update_table_schema(ctx: OpContext, db: str, table: str, body: UpdateTableBody):
    """Apply ordered add / rename / drop column changes."""
    request = UpdateTableRequest(database=db, table=table, changes=body.change_list())
    return respond(ops.update_table_schema(ctx, request))


@router.delete("/{db}/{table}", response_model=Envelope[list[str]])
def drop_table(ctx: OpContext, db: str, table: str):
    """Drop a table."""
    return respond(ops.drop_table(ctx, TableRequest(database=db, table=table)))


@router.get("/{db}/{table}/column", response_model=Envelope[list[dict[str, Any]]])
def list_columns(ctx: OpContext, db: str, table: str):
    """Columns in table order with portable and native types."""
    return respond(ops.list_columns(ctx, TableRequest(database=db, table=table)))
