"""
Operation result envelope.

Provides :class:`OperationResult`, a typed success/failure envelope that
every operation function returns, and :func:`result_from_exception`, the
single place where engine errors become envelope codes.

Envelope codes and their numeric ``code`` in the wire envelope:

============================  =====
``NOT_FOUND``                 404
``VALIDATION_FAILED``         400
``SCHEMA_ERROR``              400
``ALREADY_EXISTS``            409
``UNAVAILABLE``               503
``INTERNAL``                  500
============================  =====
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from dbmanager.core.errors import (
    AlreadyExistsError,
    BackendUnavailableError,
    DbManagerError,
    ErrorCategory,
    NotFoundError,
    SchemaError,
    ValidationError,
)
from dbmanager.core.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)

STATUS_CODES: dict[str, int] = {
    "NOT_FOUND": 404,
    "VALIDATION_FAILED": 400,
    "SCHEMA_ERROR": 400,
    "ALREADY_EXISTS": 409,
    "UNAVAILABLE": 503,
    "INTERNAL": 500,
}


@dataclass(frozen=True, slots=True)
class OperationError:
    """Structured error detail for failed operations.

    Attributes:
        code: Machine-readable code (``NOT_FOUND``, ``VALIDATION_FAILED``, …).
        message: Caller-safe description of the error.
        category: Optional :class:`ErrorCategory` of the underlying error.
        details: Extra key/value context (field errors, applied changes, …).
        retryable: Whether the caller should retry the operation.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False

    @property
    def status(self) -> int:
        """Numeric envelope code."""
        return STATUS_CODES.get(self.code, 500)


@dataclass
class OperationResult(Generic[T]):
    """Envelope returned by every operation function.

    Factory methods :meth:`ok` and :meth:`fail` should be used instead of
    the constructor directly.

    Attributes:
        success: ``True`` when the operation completed without error.
        data: The typed payload (``None`` on failure).
        error: Structured error (``None`` on success).
        warnings: Non-fatal messages collected during the operation.
        elapsed_ms: Wall-clock time the operation took.
        metadata: Additional key/value pairs for debugging or tracing.
    """

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    # ------------------------------------------------------------------ #
    # Factory helpers
    # ------------------------------------------------------------------ #

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        """Create a successful result."""
        return cls(
            success=True,
            data=data,
            warnings=warnings or [],
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        """Create a failed result."""
        return cls(
            success=False,
            error=OperationError(
                code=code,
                message=message,
                category=category,
                details=details or {},
                retryable=retryable,
            ),
            warnings=warnings or [],
            elapsed_ms=elapsed_ms,
            metadata=metadata or {},
        )

    @property
    def status(self) -> int:
        """Numeric envelope code: 200 on success."""
        return 200 if self.success else self.error.status  # type: ignore[union-attr]

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a plain dict (for logs and ``--json`` output)."""
        d: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            d["data"] = self.data
        if self.error is not None:
            d["error"] = {
                "code": self.error.code,
                "message": self.error.message,
                "retryable": self.error.retryable,
            }
            if self.error.details:
                d["error"]["details"] = self.error.details
        if self.warnings:
            d["warnings"] = self.warnings
        if self.elapsed_ms:
            d["elapsed_ms"] = round(self.elapsed_ms, 2)
        if self.metadata:
            d["metadata"] = self.metadata
        return d


# ------------------------------------------------------------------ #
# Error classification
# ------------------------------------------------------------------ #


def _error_code(exc: DbManagerError) -> str:
    # AlreadyExistsError is a SchemaError: check the subclass first
    if isinstance(exc, NotFoundError):
        return "NOT_FOUND"
    if isinstance(exc, ValidationError):
        return "VALIDATION_FAILED"
    if isinstance(exc, AlreadyExistsError):
        return "ALREADY_EXISTS"
    if isinstance(exc, SchemaError):
        return "SCHEMA_ERROR"
    if isinstance(exc, BackendUnavailableError):
        return "UNAVAILABLE"
    return "INTERNAL"


def result_from_exception(
    exc: Exception,
    timer: _Timer,
    operation: str,
) -> OperationResult[Any]:
    """Turn an exception raised by the engine into a failed result.

    Caller errors (not found, validation, schema) are logged at ``info``;
    backend unavailability at ``warning``; everything else with
    ``logger.exception`` and a generic message, so driver text never
    reaches the caller.
    """
    if not isinstance(exc, DbManagerError):
        logger.exception("op_failed", operation=operation, error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to {operation.replace('_', ' ')}",
            category=ErrorCategory.INTERNAL,
            elapsed_ms=timer.elapsed_ms,
        )

    code = _error_code(exc)
    details: dict[str, Any] = {}
    if isinstance(exc, ValidationError):
        details["errors"] = [
            {"field": exc.field, "message": exc.message, "expected": exc.expected}
        ]
    elif isinstance(exc, SchemaError) and exc.details:
        details.update(exc.details)

    if code == "INTERNAL":
        logger.exception("op_failed", operation=operation, **exc.to_dict())
    elif code == "UNAVAILABLE":
        logger.warning("op_unavailable", operation=operation, **exc.to_dict())
    else:
        logger.info("op_rejected", operation=operation, **exc.to_dict())

    return OperationResult.fail(
        code,
        exc.message,
        category=exc.category,
        details=details,
        retryable=exc.retryable,
        elapsed_ms=timer.elapsed_ms,
    )


# ------------------------------------------------------------------ #
# Timing helper
# ------------------------------------------------------------------ #


class _Timer:
    """Minimal stopwatch for timing operations."""

    __slots__ = ("_start",)

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000


def start_timer() -> _Timer:
    """Return a lightweight timer.  Use ``timer.elapsed_ms`` when done."""
    return _Timer()
