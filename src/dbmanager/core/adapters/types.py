"""Database types, pool bounds and connection configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.engine import URL

from dbmanager.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"

    @classmethod
    def from_client(cls, client: str) -> DatabaseType:
        """Resolve a client name or alias (``sqlite3``, ``pg``, ...).

        Raises:
            ConfigError: Unknown client name.
        """
        key = (client or "").strip().lower()
        if key not in _CLIENT_ALIASES:
            raise ConfigError(
                f"Unknown database client '{client}'. "
                f"Supported: {sorted(_CLIENT_ALIASES)}"
            )
        return _CLIENT_ALIASES[key]


_CLIENT_ALIASES: dict[str, DatabaseType] = {
    "sqlite": DatabaseType.SQLITE,
    "sqlite3": DatabaseType.SQLITE,
    "postgresql": DatabaseType.POSTGRESQL,
    "postgres": DatabaseType.POSTGRESQL,
    "pg": DatabaseType.POSTGRESQL,
    "mysql": DatabaseType.MYSQL,
}


@dataclass(frozen=True, slots=True)
class PoolConfig:
    """
    Connection pool bounds.

    ``min`` connections are kept open; up to ``max`` may exist at once.
    A caller waiting longer than ``timeout`` seconds for a free connection
    gets :class:`~dbmanager.core.errors.BackendUnavailableError`.
    """

    min: int = 2
    max: int = 10
    timeout: float = 30.0

    def validate(self) -> PoolConfig:
        """Check the bounds and return ``self``.

        Raises:
            ConfigError: ``min < 0``, ``max < 1``, ``min > max`` or ``timeout <= 0``.
        """
        if self.min < 0:
            raise ConfigError(f"Pool min must be >= 0, got {self.min}")
        if self.max < 1:
            raise ConfigError(f"Pool max must be >= 1, got {self.max}")
        if self.min > self.max:
            raise ConfigError(f"Pool min ({self.min}) exceeds max ({self.max})")
        if self.timeout <= 0:
            raise ConfigError(f"Pool timeout must be > 0, got {self.timeout}")
        return self

    @property
    def pool_size(self) -> int:
        """Connections SQLAlchemy keeps in the pool."""
        return min(max(self.min, 1), self.max)

    @property
    def max_overflow(self) -> int:
        """Extra connections allowed beyond ``pool_size``."""
        return self.max - self.pool_size


@dataclass
class DatabaseConfig:
    """
    Configuration for a database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # PostgreSQL / MySQL
    host: str = "localhost"
    port: int | None = None
    database: str = ""
    username: str | None = None
    password: str | None = None

    # Connection pool
    pool: PoolConfig = field(default_factory=PoolConfig)

    # Options
    connect_timeout: int = 10

    # Extra options (driver-specific, passed in the URL query)
    options: dict[str, Any] = field(default_factory=dict)

    def to_url(self, drivername: str) -> URL:
        """Build the SQLAlchemy URL for ``drivername`` (``sqlite+pysqlite``, ...)."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return URL.create(drivername, database=self.path or ":memory:")
            case DatabaseType.POSTGRESQL | DatabaseType.MYSQL:
                return URL.create(
                    drivername,
                    username=self.username,
                    password=self.password,
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    query={k: str(v) for k, v in self.options.items()},
                )
            case _:
                raise ConfigError(f"URL not supported for: {self.db_type}")


def require_port(params: Mapping[str, Any]) -> int | None:
    """Read an optional integer ``port`` from connection parameters.

    Raises:
        ConfigError: The port is present but not an integer in 1..65535.
    """
    port = params.get("port")
    if port is None or port == "":
        return None
    if isinstance(port, bool):
        raise ConfigError(f"Connection port must be an integer, got {port!r}")
    try:
        value = int(port)
    except (TypeError, ValueError):
        raise ConfigError(f"Connection port must be an integer, got {port!r}") from None
    if isinstance(port, float) and port != value:
        raise ConfigError(f"Connection port must be an integer, got {port!r}")
    if not 0 < value < 65536:
        raise ConfigError(f"Connection port out of range: {value}")
    return value


__all__ = [
    "DatabaseType",
    "PoolConfig",
    "DatabaseConfig",
    "require_port",
]
