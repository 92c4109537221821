"""Connection-parameter parsing shared by the client/server adapters."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dbmanager.core.errors import ConfigError

from .types import DatabaseConfig, DatabaseType, PoolConfig, require_port

# Keys understood by every server adapter; anything else is a driver option.
_KNOWN_KEYS = frozenset({"host", "port", "database", "user", "username", "password"})


def server_config(
    db_type: DatabaseType,
    params: Mapping[str, Any],
    pool: PoolConfig,
    default_port: int,
) -> DatabaseConfig:
    """Build a :class:`DatabaseConfig` from knex-style connection parameters.

    Raises:
        ConfigError: ``database`` is missing or ``port`` is not an integer.
    """
    database = params.get("database")
    if not isinstance(database, str) or not database.strip():
        raise ConfigError(f"{db_type.value} connection requires a non-empty 'database'")
    port = require_port(params)
    return DatabaseConfig(
        db_type=db_type,
        host=str(params.get("host") or "localhost"),
        port=port or default_port,
        database=database,
        username=params.get("user") or params.get("username"),
        password=params.get("password"),
        pool=pool,
        options={k: v for k, v in params.items() if k not in _KNOWN_KEYS},
    )
