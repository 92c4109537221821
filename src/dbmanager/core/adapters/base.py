"""Database adapter base class.

Manifesto:
    Every backend is reached through a SQLAlchemy ``Engine`` with its own
    bounded connection pool.  The adapter owns that engine, builds it from a
    :class:`DatabaseConfig` and translates driver failures into the
    dbmanager error hierarchy, so engine code only ever sees
    ``BackendUnavailableError`` or ``QueryError``.

Features:
    - Lazy engine construction: ``connect()`` validates the driver but opens
      no network connection
    - ``connection()`` for reads, ``transaction()`` for writes (commit on
      success, rollback on error)
    - Pool exhaustion and connect failures map to ``BackendUnavailableError``
    - Statement failures map to ``QueryError`` (driver text kept as cause)

Tags:
    database, abstract-base, adapter-pattern, sqlalchemy, dbmanager

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager, nullcontext
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import URL, Connection, Engine

from dbmanager.core.dialect import Dialect, get_dialect
from dbmanager.core.errors import (
    BackendUnavailableError,
    ConfigError,
    DatabaseError,
    DbManagerError,
    QueryError,
)
from dbmanager.core.logging import get_logger

from .types import DatabaseConfig, DatabaseType, PoolConfig

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Subclasses provide the driver name, engine options and parameter
    parsing; the base class manages the engine and error translation.
    """

    #: SQLAlchemy driver name, e.g. ``"postgresql+psycopg2"``
    drivername: str = ""
    #: Distribution to install when the DB-API driver is missing
    driver_package: str = ""

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._engine: Engine | None = None
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @classmethod
    @abstractmethod
    def from_params(cls, params: Mapping[str, Any], pool: PoolConfig) -> DatabaseAdapter:
        """Build an adapter from user-supplied connection parameters.

        Raises:
            ConfigError: Missing or malformed parameters.
        """
        ...

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether the engine (and its pool) has been created."""
        return self._engine is not None

    @property
    def url(self) -> URL:
        return self._config.to_url(self.drivername)

    def engine_options(self) -> dict[str, Any]:
        """Keyword arguments for ``create_engine`` (pool bounds by default)."""
        pool = self._config.pool
        return {
            "pool_size": pool.pool_size,
            "max_overflow": pool.max_overflow,
            "pool_timeout": pool.timeout,
            "pool_pre_ping": True,
        }

    def configure_engine(self, engine: Engine) -> None:
        """Hook for event listeners on a freshly created engine."""

    def connect(self) -> None:
        """Create the engine.  No connection is opened until first use.

        Raises:
            ConfigError: The DB-API driver is not installed.
        """
        if self._engine is not None:
            return
        try:
            engine = create_engine(self.url, **self.engine_options())
        except ImportError as e:
            raise ConfigError(
                f"Driver for {self.db_type.value} is not installed. "
                f"Install with: pip install {self.driver_package}",
                cause=e,
            ) from e
        self.configure_engine(engine)
        self._engine = engine
        logger.debug(
            "engine_created",
            db_type=self.db_type.value,
            pool_size=self._config.pool.pool_size,
            max_overflow=self._config.pool.max_overflow,
        )

    def disconnect(self) -> None:
        """Dispose of the engine and close pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self.connect()
        assert self._engine is not None
        return self._engine

    def _checkout(self) -> Connection:
        try:
            return self.engine.connect()
        except sa_exc.TimeoutError as e:
            raise BackendUnavailableError(
                "Connection pool exhausted; try again later", cause=e
            ) from e
        except sa_exc.DBAPIError as e:
            raise BackendUnavailableError(
                f"Cannot connect to {self.db_type.value} backend", cause=e
            ) from e

    def _exclusive(self) -> AbstractContextManager[None]:
        """Held for the lifetime of each checkout; a no-op for pooled engines."""
        return nullcontext()

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Pooled connection for reads; any open transaction is rolled back."""
        with self._exclusive():
            conn = self._checkout()
            try:
                with conn:
                    yield conn
            except DbManagerError:
                raise
            except sa_exc.SQLAlchemyError as e:
                raise self.translate_error(e) from e

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Pooled connection inside a transaction, committed on success."""
        with self._exclusive():
            conn = self._checkout()
            try:
                with conn, conn.begin():
                    yield conn
            except DbManagerError:
                raise
            except sa_exc.SQLAlchemyError as e:
                raise self.translate_error(e) from e

    def rebuild_transaction(self, table: str) -> AbstractContextManager[Connection]:  # noqa: ARG002
        """Transaction for the statements of :meth:`Dialect.add_id_column`.

        Backends that repair by rebuilding ``table`` override this to keep
        foreign keys from acting on the intermediate DROP.
        """
        return self.transaction()

    def translate_error(self, error: sa_exc.SQLAlchemyError) -> DbManagerError:
        """Classify a SQLAlchemy error raised while a statement ran."""
        if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
            return BackendUnavailableError(
                f"Lost connection to {self.db_type.value} backend", cause=error
            )
        if isinstance(error, sa_exc.TimeoutError):
            return BackendUnavailableError(
                "Connection pool exhausted; try again later", cause=error
            )
        if isinstance(error, sa_exc.DBAPIError):
            return QueryError("Statement rejected by the database", cause=error)
        return DatabaseError("Database operation failed", cause=error)

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.url.render_as_string(hide_password=True)!r})"


__all__ = [
    "DatabaseAdapter",
]
