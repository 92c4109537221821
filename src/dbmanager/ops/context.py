"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument.  The context carries the backend registry, the request id that
ties log lines together, and the caller's origin.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from dbmanager.core.backends import Backend, BackendRegistry


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        registry: Frozen :class:`BackendRegistry` of the running process.
        request_id: Unique ID for this operation invocation (auto-generated).
        caller: Origin of the request: ``"api"``, ``"cli"`` or ``"sdk"``.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    registry: BackendRegistry
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    metadata: dict[str, Any] = field(default_factory=dict)

    def backend(self, name: str) -> Backend:
        """Resolve a logical database name (``NotFoundError`` if unknown)."""
        return self.registry.resolve(name)
