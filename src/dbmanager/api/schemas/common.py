"""
Common API schemas: the ``{code, data|result}`` envelope.

Every endpoint answers with one of two shapes:

- success: ``{"code": 200, "data": ...}``
- failure: ``{"code": 4xx|5xx, "result": "<message>", "errors": [...]?}``

Response Envelope Conventions:
    - The transport status is 200 for every handled operation result; the
      envelope ``code`` carries the outcome
    - Only unhandled server faults use transport status 500 (still with the
      failure envelope)
    - ``errors`` is present for validation failures only

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class FieldError(BaseModel):
    """Field-level validation error.

    UI Hints:
        Display next to the corresponding form input.
    """

    field: str | None = Field(default=None, description="Offending input, e.g. 'columnList[0].type'")
    message: str = Field(description="Human-readable error description")
    expected: str | None = Field(default=None, description="Accepted shape or values")


class Envelope(BaseModel, Generic[T]):
    """Successful operation."""

    code: int = Field(default=200, description="Always 200 on success")
    data: T = Field(description="Operation payload")


class PageEnvelope(Envelope[list[dict[str, Any]]]):
    """Rows of one page; ``total`` only when ``count=true`` was requested."""

    total: int | None = Field(default=None, description="Row count of the whole table")


class ErrorEnvelope(BaseModel):
    """Failed operation.

    Error Codes:
        - ``400``: Invalid input or rejected schema change
        - ``404``: Unknown database, table or row
        - ``409``: Table already exists
        - ``503``: Backend unreachable or pool exhausted, retry later
        - ``500``: Unexpected server error
    """

    code: int = Field(description="Outcome code (400, 404, 409, 500, 503)")
    result: str = Field(description="Human-readable error message")
    errors: list[FieldError] | None = Field(
        default=None, description="Field errors (validation failures only)"
    )
    details: dict[str, Any] | None = Field(
        default=None, description="Structured details, e.g. applied schema changes"
    )
