"""
Shared API router utilities.

- ``respond()``: turn an :class:`OperationResult` into an envelope response
- ``page_payload()``: rows (and optional total) of a :class:`PageResult`

Tags:
    api, utils, envelope

Doc-Types: API_INFRASTRUCTURE
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi.responses import JSONResponse

from dbmanager.api.middleware.errors import error_response
from dbmanager.core.types import PageResult
from dbmanager.ops.result import OperationResult


class EnvelopeFields(dict):
    """Top-level envelope keys produced by a transform, ``data`` included."""


def respond(
    result: OperationResult[Any],
    transform: Callable[[Any], Any] | None = None,
) -> JSONResponse:
    """Success envelope for ``result.data`` or the failure envelope.

    ``transform`` converts the payload to JSON-ready data; returning
    :class:`EnvelopeFields` places extra keys beside ``data``.
    """
    if not result.success:
        error = result.error
        assert error is not None
        details = {k: v for k, v in error.details.items() if k != "errors"}
        return error_response(
            code=error.status,
            message=error.message,
            errors=error.details.get("errors"),
            details=details,
        )

    data = transform(result.data) if transform else result.data
    if isinstance(data, EnvelopeFields):
        return JSONResponse(content={"code": 200, **data})
    return JSONResponse(content={"code": 200, "data": data})


def page_payload(page: PageResult) -> EnvelopeFields:
    """Rows as ``data``; ``total`` only when it was counted."""
    fields = EnvelopeFields(data=page.rows)
    if page.total_count is not None:
        fields["total"] = page.total_count
    return fields
