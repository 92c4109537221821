"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and
lifespan events into a single ``FastAPI`` instance.

Manifesto:
    The app factory is the single composition root: all middleware,
    routers, and lifecycle hooks are wired here so the rest of the
    codebase never touches ``FastAPI`` directly.

Lifecycle:
    startup   configure logging → build and freeze the backend registry
              → repair missing ``id`` columns → accept requests
    shutdown  dispose every connection pool owned by the app

Tags:
    dbmanager, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from dbmanager.api.deps import get_settings
from dbmanager.api.middleware.errors import request_validation_handler, unhandled_exception_handler
from dbmanager.api.middleware.request_id import RequestIDMiddleware
from dbmanager.api.settings import DbManagerSettings
from dbmanager.core.backends import BackendRegistry, build_registry
from dbmanager.core.catalog import repair_all
from dbmanager.core.logging import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown hooks."""
    settings: DbManagerSettings = app.state.settings
    configure_logging(level=settings.log_level, json_format=settings.log_json, service="dbmanager")
    log = get_logger("dbmanager.api")
    log.info("dbmanager API starting", version=app.version)

    registry: BackendRegistry | None = app.state.injected_registry
    owns_registry = registry is None
    if registry is None:
        # A configuration error aborts startup
        registry = build_registry(settings.backend_configs())
    log.info("backends_ready", databases=registry.names())

    if settings.repair_on_startup:
        reports = await run_in_threadpool(repair_all, registry)
        for report in reports:
            if not report.ok:
                log.warning("repair_incomplete", **report.to_dict())

    app.state.registry = registry
    try:
        yield
    finally:
        app.state.registry = None
        if owns_registry:
            registry.close()
        log.info("dbmanager API shutting down")


def create_app(
    *,
    settings: DbManagerSettings | None = None,
    registry: BackendRegistry | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : DbManagerSettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    registry : BackendRegistry | None
        Pre-built registry.  When given, the app uses it as-is and leaves
        closing it to the caller; otherwise the registry is built from
        ``settings`` at startup and closed at shutdown.
    """

    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings on app state for middleware access
    app.state.settings = settings
    app.state.injected_registry = registry
    app.state.registry = None

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from dbmanager.api.routers import data, databases, health, tables

    prefix = settings.api_prefix

    # Health endpoint at root level (no prefix) for container healthchecks
    app.include_router(health.router, tags=["health"])

    app.include_router(databases.router, prefix=prefix, tags=["databases"])
    app.include_router(tables.router, prefix=prefix, tags=["tables"])
    app.include_router(data.router, prefix=prefix, tags=["data"])

    return app
