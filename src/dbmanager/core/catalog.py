"""
Catalog inspection and ``id`` repair.

Lists the user tables of a backend and guarantees every one of them has an
integer auto-incrementing ``id`` column, the only key the data operations
use for update and delete.

Manifesto:
    Tables may be created outside dbmanager, without an ``id``.  Repair runs
    once per backend before the service handles requests; it is idempotent
    and never fails the startup: a table that cannot be repaired is logged
    and reported, an unreachable backend is reported as a whole.

Architecture:
    ::

        repair_all(registry)
            │  one backend at a time
            ▼
        CatalogInspector(backend).repair()
            │  list_tables()
            ▼
        ThreadPoolExecutor (max_workers = pool max)
            ├── ensure_id("users")     has id      -> skip
            ├── ensure_id("legacy")    lacks id    -> dialect.add_id_column()
            └── ensure_id("broken")    error       -> report.failed["broken"]

Tags:
    catalog, introspection, repair, concurrency, dbmanager

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text

from dbmanager.core.backends import Backend, BackendRegistry
from dbmanager.core.errors import DbManagerError, NotFoundError
from dbmanager.core.logging import get_logger
from dbmanager.core.types import ID_COLUMN, SYSTEM_TABLES, ColumnDescriptor, portable_type

logger = get_logger(__name__)


@dataclass
class RepairReport:
    """Outcome of repairing one backend.

    Attributes:
        backend: Logical database name.
        checked: Tables inspected.
        repaired: Tables that received an ``id`` column.
        failed: Table name -> error message for tables that could not be repaired.
        error: Set when the backend itself could not be inspected.
    """

    backend: str
    checked: list[str] = field(default_factory=list)
    repaired: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "checked": self.checked,
            "repaired": self.repaired,
            "failed": self.failed,
            "error": self.error,
        }


class CatalogInspector:
    """Catalog queries and ``id`` repair for one backend."""

    def __init__(self, backend: Backend):
        self._backend = backend
        self._dialect = backend.dialect

    @property
    def backend(self) -> Backend:
        return self._backend

    def list_tables(self) -> list[str]:
        """User table names, sorted, system tables excluded."""
        with self._backend.connection() as conn:
            names = conn.execute(text(self._dialect.list_tables())).scalars().all()
        return sorted(name for name in names if name not in SYSTEM_TABLES)

    def table_exists(self, table: str) -> bool:
        if table in SYSTEM_TABLES:
            return False
        with self._backend.connection() as conn:
            row = conn.execute(text(self._dialect.table_exists()), {"table": table}).first()
        return row is not None

    def list_columns(self, table: str) -> list[ColumnDescriptor]:
        """Columns in table order.

        Raises:
            NotFoundError: The table does not exist.
        """
        if table in SYSTEM_TABLES:
            raise NotFoundError(f"Table '{table}' does not exist").with_context(
                backend=self._backend.name, table=table
            )
        with self._backend.connection() as conn:
            rows = conn.execute(text(self._dialect.list_columns()), {"table": table}).all()
        if not rows:
            raise NotFoundError(f"Table '{table}' does not exist").with_context(
                backend=self._backend.name, table=table
            )
        return [
            ColumnDescriptor(
                name=name,
                type=portable_type(native_type),
                native_type=native_type or None,
                nullable=bool(nullable),
                primary_key=bool(primary_key),
            )
            for name, native_type, nullable, primary_key in rows
        ]

    def has_id_column(self, table: str) -> bool:
        return any(c.name == ID_COLUMN for c in self.list_columns(table))

    def ensure_id(self, table: str) -> bool:
        """Add the ``id`` column when missing.  Returns ``True`` if it was added."""
        columns = self.list_columns(table)
        if any(c.name == ID_COLUMN for c in columns):
            return False
        query = self._dialect.table_definitions()
        with self._backend.rebuild_transaction(table) as conn:
            definitions = (
                list(conn.execute(text(query), {"table": table}).scalars()) if query else []
            )
            # Stored DDL may hold literals such as '12:00': no bind parsing
            for statement in self._dialect.add_id_column(table, columns, definitions):
                conn.exec_driver_sql(statement)
        logger.info("id_column_added", backend=self._backend.name, table=table)
        return True

    def repair(self) -> RepairReport:
        """Ensure every user table has ``id``.  Never raises for table failures.

        Tables are checked concurrently; the worker count is bounded by the
        backend's pool so repair cannot starve itself of connections.
        """
        report = RepairReport(backend=self._backend.name)
        try:
            tables = self.list_tables()
        except DbManagerError as exc:
            logger.error(
                "repair_backend_unavailable",
                backend=self._backend.name,
                error=exc.message,
                cause=str(exc.cause) if exc.cause else None,
            )
            report.error = exc.message
            return report

        report.checked = tables
        if not tables:
            return report

        workers = max(1, min(self._backend.pool.max, len(tables)))
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=f"repair-{self._backend.name}"
        ) as pool:
            futures = {table: pool.submit(self.ensure_id, table) for table in tables}

        for table, future in futures.items():
            try:
                if future.result():
                    report.repaired.append(table)
            except Exception as exc:
                # One broken table must not abort the others
                logger.exception("repair_table_failed", backend=self._backend.name, table=table)
                message = exc.message if isinstance(exc, DbManagerError) else str(exc)
                report.failed[table] = message

        logger.info(
            "repair_completed",
            backend=self._backend.name,
            checked=len(report.checked),
            repaired=len(report.repaired),
            failed=len(report.failed),
        )
        return report


def repair_all(registry: BackendRegistry) -> list[RepairReport]:
    """Repair every backend in registration order; one report each."""
    return [CatalogInspector(backend).repair() for backend in registry]


__all__ = [
    "RepairReport",
    "CatalogInspector",
    "repair_all",
]
