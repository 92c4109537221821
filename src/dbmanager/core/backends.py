"""
Backend registry.

Maps logical database names to live backends.  A :class:`Backend` bundles
the dialect strategy with the adapter that owns the connection pool; the
:class:`BackendRegistry` is filled once at startup, frozen, and then only
read by concurrent requests.

Manifesto:
    - **Fail fast:** every configuration problem surfaces at registration,
      before the service accepts a request
    - **Lazy connections:** registration never opens a network connection,
      so an unreachable server is reported on first use
    - **Read-only after startup:** ``freeze()`` turns further registration
      into a ``ConfigError``

Examples:
    >>> registry = BackendRegistry()
    >>> backend = registry.register("main", "sqlite3", {"filename": ":memory:"})
    >>> registry.resolve("main").dialect.name
    'sqlite'
    >>> registry.names()
    ['main']

Tags:
    registry, backends, connection-pool, dbmanager

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy.engine import Connection

from dbmanager.core.adapters import DatabaseAdapter, DatabaseType, PoolConfig, get_adapter
from dbmanager.core.config import BackendConfig
from dbmanager.core.dialect import Dialect
from dbmanager.core.errors import ConfigError, DbManagerError, NotFoundError
from dbmanager.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Backend:
    """A registered logical database."""

    name: str
    adapter: DatabaseAdapter

    @property
    def db_type(self) -> DatabaseType:
        return self.adapter.db_type

    @property
    def dialect(self) -> Dialect:
        return self.adapter.dialect

    @property
    def pool(self) -> PoolConfig:
        return self.adapter.config.pool

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Pooled read connection; errors carry this backend's name."""
        with self._named_errors(), self.adapter.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Pooled connection in a transaction committed on success."""
        with self._named_errors(), self.adapter.transaction() as conn:
            yield conn

    @contextmanager
    def rebuild_transaction(self, table: str) -> Iterator[Connection]:
        """Transaction for rebuilding ``table`` (see :meth:`Dialect.add_id_column`)."""
        with self._named_errors(), self.adapter.rebuild_transaction(table) as conn:
            yield conn

    @contextmanager
    def _named_errors(self) -> Iterator[None]:
        try:
            yield
        except DbManagerError as exc:
            if exc.context.backend is None:
                exc.context.backend = self.name
            raise

    def close(self) -> None:
        self.adapter.disconnect()


class BackendRegistry:
    """
    Logical name -> :class:`Backend`.

    Registration is serialized by a lock; lookups after :meth:`freeze` need
    no locking because the mapping is never mutated again.
    """

    def __init__(self) -> None:
        self._backends: dict[str, Backend] = {}
        self._frozen = False
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        client: str,
        connection: Mapping[str, Any],
        pool: PoolConfig | None = None,
    ) -> Backend:
        """Create and register a backend.

        Raises:
            ConfigError: Empty or duplicate name, unknown client, malformed
                connection parameters, invalid pool bounds, missing driver,
                or a frozen registry.
        """
        if not isinstance(name, str) or not name.strip():
            raise ConfigError("Database name must not be empty")
        with self._lock:
            if self._frozen:
                raise ConfigError(f"Cannot register '{name}': registry is frozen")
            if name in self._backends:
                raise ConfigError(f"Duplicate database name: '{name}'")
            try:
                adapter = get_adapter(client, connection, pool)
            except ConfigError as e:
                raise e.with_context(backend=name)
            backend = Backend(name=name, adapter=adapter)
            self._backends[name] = backend

        logger.info(
            "backend_registered",
            backend=name,
            db_type=backend.db_type.value,
            pool_min=backend.pool.min,
            pool_max=backend.pool.max,
        )
        return backend

    def resolve(self, name: str) -> Backend:
        """Backend for a logical name.

        Raises:
            NotFoundError: No backend is registered under ``name``.
        """
        try:
            return self._backends[name]
        except KeyError:
            raise NotFoundError(f"Database '{name}' is not configured").with_context(
                backend=name
            ) from None

    def names(self) -> list[str]:
        """Logical names in registration order."""
        return list(self._backends)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def close(self) -> None:
        """Dispose every pool."""
        for backend in self._backends.values():
            backend.close()
        logger.info("backends_closed", count=len(self._backends))

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __iter__(self) -> Iterator[Backend]:
        return iter(list(self._backends.values()))

    def __len__(self) -> int:
        return len(self._backends)


def build_registry(configs: Iterable[BackendConfig]) -> BackendRegistry:
    """Register every configured backend and freeze the registry.

    On the first failure, backends registered so far are closed and the
    :class:`ConfigError` propagates.
    """
    registry = BackendRegistry()
    try:
        for config in configs:
            registry.register(
                config.name,
                config.client,
                config.connection,
                config.pool.to_pool_config(),
            )
    except ConfigError:
        registry.close()
        raise
    registry.freeze()
    return registry


__all__ = [
    "Backend",
    "BackendRegistry",
    "build_registry",
]
