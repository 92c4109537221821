"""Database adapter registry and factory.

Manifesto:
    Consumers should never hard-code adapter class names.  The registry
    maps ``DatabaseType`` values to adapter classes and the ``get_adapter()``
    factory builds a configured instance from a client name (aliases
    included) and knex-style connection parameters.

Features:
    - ``AdapterRegistry`` singleton with pre-registered defaults
    - ``register()`` for custom adapters (test doubles, forks)
    - ``get_adapter()`` factory: client + params + pool -> adapter with engine

Tags:
    database, registry, factory, singleton, dbmanager

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dbmanager.core.errors import ConfigError

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType, PoolConfig


class AdapterRegistry:
    """
    Registry for database adapter classes.

    Pre-registered adapters:
    - ``sqlite``: :class:`SQLiteAdapter`
    - ``postgresql``: :class:`PostgreSQLAdapter`
    - ``mysql``: :class:`MySQLAdapter`

    Aliases (``sqlite3``, ``pg``, ``postgres``) are resolved by
    :meth:`DatabaseType.from_client` before lookup.
    """

    def __init__(self):
        self._factories: dict[DatabaseType, type[DatabaseAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default adapters."""
        self._factories[DatabaseType.SQLITE] = SQLiteAdapter
        self._factories[DatabaseType.POSTGRESQL] = PostgreSQLAdapter
        self._factories[DatabaseType.MYSQL] = MySQLAdapter

    def register(self, db_type: DatabaseType, adapter_class: type[DatabaseAdapter]) -> None:
        """Register an adapter class."""
        self._factories[db_type] = adapter_class

    def create(
        self,
        client: DatabaseType | str,
        params: Mapping[str, Any],
        pool: PoolConfig | None = None,
    ) -> DatabaseAdapter:
        """Create an adapter and its engine (no connection is opened).

        Raises:
            ConfigError: Unknown client, bad parameters or pool bounds,
                or a missing driver.
        """
        db_type = client if isinstance(client, DatabaseType) else DatabaseType.from_client(client)
        if db_type not in self._factories:
            raise ConfigError(f"No adapter registered for: {db_type.value}")
        if not isinstance(params, Mapping):
            raise ConfigError("Connection parameters must be a mapping")
        pool = (pool or PoolConfig()).validate()
        adapter = self._factories[db_type].from_params(params, pool)
        adapter.connect()
        return adapter

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(t.value for t in self._factories)


# Global registry
adapter_registry = AdapterRegistry()


def get_adapter(
    client: DatabaseType | str,
    params: Mapping[str, Any],
    pool: PoolConfig | None = None,
) -> DatabaseAdapter:
    """
    Get a database adapter by client name.

    Usage:
        adapter = get_adapter("sqlite3", {"filename": "data.db"})
        adapter = get_adapter("pg", {"host": "db", "database": "app"}, PoolConfig(0, 7))
    """
    return adapter_registry.create(client, params, pool)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
