"""
Shared pytest fixtures and configuration for dbmanager tests.

This module provides:
- Automatic ``unit`` / ``integration`` markers based on test location
- A file-backed SQLite registry per test (``registry``, ``backend``, ``ctx``)
- ``run_sql`` to seed tables outside dbmanager, the way a foreign tool would

Usage:
    Fixtures are auto-discovered by pytest::

        def test_something(backend, run_sql):
            run_sql(backend, "CREATE TABLE legacy (name TEXT)")
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import text

from dbmanager.core.adapters import PoolConfig
from dbmanager.core.backends import Backend, BackendRegistry
from dbmanager.ops.context import OperationContext

# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        # End-to-end scenarios through ops and HTTP touch a real database file
        if test_path.parts[0] in {"ops", "api", "cli"} or "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Backend Fixtures
# =============================================================================


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a fresh SQLite database file."""
    return tmp_path / "main.sqlite"


@pytest.fixture
def registry(db_path: Path) -> Iterator[BackendRegistry]:
    """Frozen registry with one SQLite backend named ``main``."""
    reg = BackendRegistry()
    reg.register("main", "sqlite3", {"filename": str(db_path)}, PoolConfig(min=1, max=4, timeout=5))
    reg.freeze()
    yield reg
    reg.close()


@pytest.fixture
def backend(registry: BackendRegistry) -> Backend:
    return registry.resolve("main")


@pytest.fixture
def ctx(registry: BackendRegistry) -> OperationContext:
    """OperationContext wired to the ``main`` SQLite backend."""
    return OperationContext(registry=registry, caller="test")


@pytest.fixture
def run_sql() -> Callable[..., Any]:
    """Execute raw SQL on a backend in its own transaction."""

    def _run(backend: Backend, sql: str, params: dict[str, Any] | None = None) -> list[Any]:
        with backend.transaction() as conn:
            result = conn.execute(text(sql), params or {})
            return list(result) if result.returns_rows else []

    return _run
