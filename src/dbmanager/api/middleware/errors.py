"""
Error-handling middleware: maps failures to the failure envelope.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dbmanager.api.schemas.common import ErrorEnvelope, FieldError
from dbmanager.core.logging import get_logger

logger = get_logger(__name__)


def error_response(
    *,
    code: int,
    message: str,
    errors: list[dict[str, Any]] | None = None,
    details: dict[str, Any] | None = None,
    status: int = 200,
) -> JSONResponse:
    """Build a failure envelope response."""
    body = ErrorEnvelope(
        code=code,
        result=message,
        errors=[FieldError(**e) for e in errors] if errors else None,
        details=details or None,
    )
    return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed path, query or body: envelope code 400."""
    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append(
            {
                "field": ".".join(location) or None,
                "message": err.get("msg", "Invalid value"),
                "expected": err.get("type"),
            }
        )
    return error_response(code=400, message="Invalid request", errors=errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: transport 500 with the envelope."""
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return error_response(
        code=500,
        message=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        status=500,
    )
