"""SQLite database adapter."""

from __future__ import annotations

import threading
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager, nullcontext
from typing import Any

from sqlalchemy import event
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from dbmanager.core.errors import BackendUnavailableError, ConfigError, DbManagerError, SchemaError
from dbmanager.core.logging import get_logger

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType, PoolConfig

MEMORY = ":memory:"

logger = get_logger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module through ``sqlite+pysqlite``.  File
    databases get a regular bounded pool with WAL journaling so readers do
    not block the writer.  ``:memory:`` lives in a single connection that
    is handed to one caller at a time.
    """

    drivername = "sqlite+pysqlite"
    driver_package = "sqlite3 (standard library)"

    def __init__(
        self,
        path: str = MEMORY,
        *,
        pool: PoolConfig | None = None,
        busy_timeout: float = 5.0,
        **kwargs: Any,
    ):
        pool = pool or PoolConfig()
        if path == MEMORY:
            pool = PoolConfig(min=1, max=1, timeout=pool.timeout)
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            pool=pool,
            options=kwargs,
        )
        super().__init__(config)
        self._busy_timeout = busy_timeout
        # Re-entrant: a caller holding the connection may open it again
        self._memory_lock = threading.RLock() if path == MEMORY else None

    @classmethod
    def from_params(cls, params: Mapping[str, Any], pool: PoolConfig) -> SQLiteAdapter:
        filename = params.get("filename")
        if not isinstance(filename, str) or not filename.strip():
            raise ConfigError("SQLite connection requires a non-empty 'filename'")
        return cls(filename, pool=pool)

    @property
    def is_memory(self) -> bool:
        return (self._config.path or MEMORY) == MEMORY

    def engine_options(self) -> dict[str, Any]:
        connect_args = {"check_same_thread": False, "timeout": self._busy_timeout}
        if self.is_memory:
            # A private in-memory database exists once per connection
            return {"poolclass": StaticPool, "connect_args": connect_args}
        options = super().engine_options()
        options["pool_pre_ping"] = False
        options["connect_args"] = connect_args
        return options

    def configure_engine(self, engine: Engine) -> None:
        # pysqlite does not emit BEGIN before DDL; take over transaction
        # control so schema changes and table rebuilds are atomic.

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={int(self._busy_timeout * 1000)}")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _do_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN")

    @contextmanager
    def _memory_checkout(self, lock: threading.RLock) -> Iterator[None]:
        # StaticPool never blocks, so the pool timeout is enforced here
        if not lock.acquire(timeout=self._config.pool.timeout):
            raise BackendUnavailableError("Connection pool exhausted; try again later")
        try:
            yield
        finally:
            lock.release()

    def _exclusive(self) -> AbstractContextManager[None]:
        if self._memory_lock is None:
            return nullcontext()
        return self._memory_checkout(self._memory_lock)

    @contextmanager
    def rebuild_transaction(self, table: str) -> Iterator[Connection]:
        """Transaction for a table rebuild, following SQLite's ALTER TABLE recipe.

        ``foreign_keys`` is switched off (a no-op inside a transaction, so
        it happens before BEGIN) to keep the DROP of the old table from
        cascading into child tables; ``legacy_alter_table`` keeps the final
        RENAME from rewriting references in other tables.  Before COMMIT,
        ``foreign_key_check`` must report nothing for ``table``.
        """
        with self._exclusive():
            conn = self._checkout()
            try:
                with conn:
                    raw = conn.connection.driver_connection
                    raw.execute("PRAGMA foreign_keys=OFF")
                    raw.execute("PRAGMA legacy_alter_table=ON")
                    try:
                        with conn.begin():
                            yield conn
                            self._check_foreign_keys(conn, table)
                    finally:
                        raw.execute("PRAGMA legacy_alter_table=OFF")
                        raw.execute("PRAGMA foreign_keys=ON")
            except DbManagerError:
                raise
            except sa_exc.SQLAlchemyError as e:
                raise self.translate_error(e) from e

    @staticmethod
    def _check_foreign_keys(conn: Connection, table: str) -> None:
        # Rows are (child table, rowid, parent table, fk index)
        violations = [
            tuple(row)
            for row in conn.exec_driver_sql("PRAGMA foreign_key_check")
            if table in (row[0], row[2])
        ]
        if violations:
            logger.warning("rebuild_foreign_key_violations", table=table, count=len(violations))
            raise SchemaError(
                f"Rebuilding table '{table}' would break {len(violations)} foreign key reference(s)",
                details={"violations": [list(v) for v in violations[:20]]},
            )


__all__ = [
    "SQLiteAdapter",
]
