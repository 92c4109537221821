"""
FastAPI dependency injection: shared singletons and per-request factories.

Usage in routers::

    from dbmanager.api.deps import OpContext, Page

    @router.get("/{db}/{table}/data")
    def list_data(ctx: OpContext, page: Page, db: str, table: str):
        ...

Manifesto:
    Dependency injection keeps routers thin.  Singletons (settings, the
    backend registry) are created once; per-request objects (OpContext)
    carry request-scoped state through the call chain.

Tags:
    api, dependency-injection, singletons, OpContext, dbmanager

Doc-Types:
    api-reference
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query, Request

from dbmanager.api.settings import DbManagerSettings
from dbmanager.core.backends import BackendRegistry
from dbmanager.ops.context import OperationContext

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> DbManagerSettings:
    """Cached settings: loaded once per process."""
    return DbManagerSettings()


# ── Backend registry (process-wide, built in the lifespan) ───────────────


def get_registry(request: Request) -> BackendRegistry:
    """The registry the lifespan stored on ``app.state``."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Backend registry is not initialized; is the lifespan running?")
    return registry


# ── Operation context (per-request) ──────────────────────────────────────


def get_operation_context(
    request: Request,
    registry: Annotated[BackendRegistry, Depends(get_registry)],
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return OperationContext(
        registry=registry,
        request_id=request_id,
        caller="api",
    )


# ── Pagination parameters (per-request) ─────────────────────────────────


@dataclass(frozen=True, slots=True)
class PageParams:
    """``page`` / ``rows`` query parameters.

    Range checks happen in the operations layer so that out-of-range
    values produce the same envelope as any other validation failure.
    """

    page: int = 1
    rows: int = 30


def get_page_params(
    settings: Annotated[DbManagerSettings, Depends(get_settings)],
    page: int = Query(1, description="Page number (1-indexed)"),
    rows: int | None = Query(None, description="Rows per page (max 1000)"),
) -> PageParams:
    """FastAPI dependency for pagination parameters."""
    return PageParams(page=page, rows=rows if rows is not None else settings.default_rows_per_page)


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[DbManagerSettings, Depends(get_settings)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
Page = Annotated[PageParams, Depends(get_page_params)]
