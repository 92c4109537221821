"""PostgreSQL database adapter.

Uses ``psycopg2`` through SQLAlchemy's ``postgresql+psycopg2`` dialect.

Install the driver::

    pip install psycopg2-binary
    # or:  pip install dbmanager[postgresql]

A missing driver surfaces as :class:`~dbmanager.core.errors.ConfigError`
when the backend is registered.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ._server import server_config
from .base import DatabaseAdapter
from .types import DatabaseType, PoolConfig

DEFAULT_PORT = 5432


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL database adapter.

    Tables are managed in schema ``public``.
    """

    drivername = "postgresql+psycopg2"
    driver_package = "psycopg2-binary"

    @classmethod
    def from_params(cls, params: Mapping[str, Any], pool: PoolConfig) -> PostgreSQLAdapter:
        return cls(server_config(DatabaseType.POSTGRESQL, params, pool, DEFAULT_PORT))

    def engine_options(self) -> dict[str, Any]:
        options = super().engine_options()
        options["connect_args"] = {"connect_timeout": self._config.connect_timeout}
        return options


__all__ = [
    "PostgreSQLAdapter",
]
