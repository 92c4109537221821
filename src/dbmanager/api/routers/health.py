"""
Health router: liveness for container healthchecks, mounted without prefix.

GET  /health
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from dbmanager.api.deps import Settings

router = APIRouter()


@router.get("/health")
def health(request: Request, settings: Settings):
    """Process is up; reports the number of registered databases."""
    registry = getattr(request.app.state, "registry", None)
    return {
        "status": "ok",
        "service": "dbmanager",
        "version": settings.api_version,
        "databases": len(registry) if registry is not None else 0,
    }
