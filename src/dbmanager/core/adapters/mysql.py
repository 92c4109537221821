"""MySQL database adapter.

Uses ``mysql.connector`` from the ``mysql-connector-python`` package via
SQLAlchemy's ``mysql+mysqlconnector`` dialect.

Install the driver::

    pip install mysql-connector-python
    # or:  pip install dbmanager[mysql]

A missing driver surfaces as :class:`~dbmanager.core.errors.ConfigError`
when the backend is registered.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ._server import server_config
from .base import DatabaseAdapter
from .types import DatabaseType, PoolConfig

DEFAULT_PORT = 3306


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter.

    Connections use ``utf8mb4`` unless a ``charset`` option is given.
    """

    drivername = "mysql+mysqlconnector"
    driver_package = "mysql-connector-python"

    @classmethod
    def from_params(cls, params: Mapping[str, Any], pool: PoolConfig) -> MySQLAdapter:
        config = server_config(DatabaseType.MYSQL, params, pool, DEFAULT_PORT)
        config.options.setdefault("charset", "utf8mb4")
        return cls(config)

    def engine_options(self) -> dict[str, Any]:
        options = super().engine_options()
        # Server closes idle connections after wait_timeout (8h default)
        options["pool_recycle"] = 3600
        options["connect_args"] = {"connection_timeout": self._config.connect_timeout}
        return options


__all__ = [
    "MySQLAdapter",
]
