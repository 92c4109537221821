"""
Structured error types for dbmanager.

Every failure the engine can report is a :class:`DbManagerError` carrying a
category, a retry hint, structured context and (optionally) the driver
exception that caused it.  The operations layer turns these into envelope
codes; nothing above the engine needs to inspect driver exceptions.

Manifesto:
    - **Typed hierarchy:** one class per condition the caller can act on
    - **Explicit retry semantics:** only pool/connectivity errors are retryable
    - **Rich context:** backend, table and field travel with the error
    - **Error chaining:** the driver exception is kept as ``cause`` for logs,
      never shown to the caller

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      DbManagerError                          │
        │  (category, retryable, context, cause)                       │
        ├──────────────────────────────────────────────────────────────┤
        │  ConfigError          NotFoundError       ValidationError    │
        │  (CONFIG)             (NOT_FOUND)         (VALIDATION)       │
        │                                                              │
        │  SchemaError          BackendUnavailableError                │
        │  (SCHEMA)             (BACKEND, retryable)                   │
        │       │                                                      │
        │  AlreadyExistsError   DatabaseError ── QueryError            │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> err = NotFoundError("Table 'users' does not exist").with_context(
    ...     backend="main", table="users"
    ... )
    >>> err.context.to_dict()
    {'backend': 'main', 'table': 'users'}

    >>> BackendUnavailableError("pool exhausted").retryable
    True

Guardrails:
    ❌ DON'T: Return raw driver messages to API callers
    ✅ DO: Wrap them in DatabaseError(cause=exc) and log the cause

    ❌ DON'T: Raise ValidationError after a statement already ran
    ✅ DO: Validate shape before touching the backend

Tags:
    error-handling, exception-hierarchy, retry-logic, dbmanager

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and envelope codes."""

    CONFIG = "CONFIG"             # Bad backend parameters, unknown dialect
    NOT_FOUND = "NOT_FOUND"       # Unknown database, table or row
    VALIDATION = "VALIDATION"     # Malformed identifier or payload
    SCHEMA = "SCHEMA"             # Table exists, protected table, bad type
    BACKEND = "BACKEND"           # Pool exhaustion, connectivity loss
    DATABASE = "DATABASE"         # Unclassified driver failure
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only the fields that are set end up in :meth:`to_dict`, which keeps log
    lines short.

    Attributes:
        backend: Logical database name the operation targeted
        table: Table name, when the operation was table-scoped
        field: Payload field that failed validation
        expected: Human-readable description of the expected shape
        metadata: Additional key/value pairs
    """

    backend: str | None = None
    table: str | None = None
    field: str | None = None
    expected: str | None = None
    metadata: dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["backend", "table", "field", "expected"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DbManagerError(Exception):
    """
    Base exception for all dbmanager errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    raising sites only pass what is specific to the failure.

    Attributes:
        message: Human-readable, caller-safe description
        category: :class:`ErrorCategory` used for envelope codes
        retryable: Whether the caller may retry the same request
        context: :class:`ErrorContext` with structured metadata
        cause: Underlying exception (driver error, parse error, ...)
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DbManagerError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Row not found").with_context(
                backend="main", table="users", row_id=7
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(DbManagerError):
    """
    Invalid backend configuration.

    Raised while registering backends; aborts startup.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# LOOKUP ERRORS
# =============================================================================


class NotFoundError(DbManagerError):
    """Unknown logical database, table, or row id."""

    default_category = ErrorCategory.NOT_FOUND
    default_retryable = False


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DbManagerError):
    """
    Malformed identifier or payload.

    Never retryable - the request must be fixed.  ``field`` names the
    offending input and ``expected`` describes the accepted shape so the
    boundary layer can render a precise message.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        expected: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.expected = expected
        if field is not None:
            self.context.field = field
        if expected is not None:
            self.context.expected = expected

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field is not None:
            result["field"] = self.field
        if self.expected is not None:
            result["expected"] = self.expected
        return result


# =============================================================================
# SCHEMA ERRORS
# =============================================================================


class SchemaError(DbManagerError):
    """
    Table-definition failure.

    Covers protected tables, dialect-unsupported column types and failed
    column changes.  ``details`` carries structured information such as the
    list of column changes that were applied before the failure.
    """

    default_category = ErrorCategory.SCHEMA
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.details:
            result["details"] = self.details
        return result


class AlreadyExistsError(SchemaError):
    """Table to be created already exists."""

    pass


# =============================================================================
# BACKEND ERRORS
# =============================================================================


class BackendUnavailableError(DbManagerError):
    """
    Pool exhaustion or connectivity loss.

    Retryable: the backend may become reachable, or a pooled connection may
    free up, by the time the caller tries again.
    """

    default_category = ErrorCategory.BACKEND
    default_retryable = True


class DatabaseError(DbManagerError):
    """Driver failure that could not be classified more precisely."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """A statement was rejected by the backend."""

    pass


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DbManagerError",
    "ConfigError",
    "NotFoundError",
    "ValidationError",
    "SchemaError",
    "AlreadyExistsError",
    "BackendUnavailableError",
    "DatabaseError",
    "QueryError",
]
