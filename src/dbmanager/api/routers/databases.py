"""
Database router: banner and configured databases.

GET  /api
GET  /api/database
"""

from __future__ import annotations

from fastapi import APIRouter

from dbmanager.api.deps import OpContext, Settings
from dbmanager.api.schemas.common import Envelope
from dbmanager.api.utils import respond
from dbmanager.ops import databases as ops

router = APIRouter(prefix="/api")


@router.get("", response_model=Envelope[dict[str, str]])
def banner(settings: Settings):
    """Service name and version."""
    return {"code": 200, "data": {"service": settings.api_title, "version": settings.api_version}}


@router.get("/database", response_model=Envelope[list[str]])
def list_databases(ctx: OpContext):
    """Logical names of the configured databases, in configuration order."""
    return respond(ops.list_databases(ctx))
