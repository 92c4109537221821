"""Database adapters -- one SQLAlchemy engine per configured backend.

Manifesto:
    The engine runs the same generic table operations against SQLite,
    PostgreSQL and MySQL.  Each adapter knows how to turn knex-style
    connection parameters into a SQLAlchemy URL and a bounded pool, and
    how to report driver failures as dbmanager errors.

    Drivers other than sqlite3 are optional; install the corresponding
    extra::

        pip install dbmanager[postgresql]   # psycopg2-binary
        pip install dbmanager[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        Engine lifecycle + error translation
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 (optional)
        |-- MySQLAdapter             mysql.connector (optional)

    AdapterRegistry (registry.py)    DatabaseType -> adapter class
    DatabaseConfig (types.py)        Connection parameters + PoolConfig
    DatabaseType (types.py)          Enum of supported backends + aliases

Modules
-------
base            Abstract DatabaseAdapter base class
types           DatabaseType, PoolConfig, DatabaseConfig
registry        AdapterRegistry singleton + get_adapter() factory
sqlite          SQLite adapter (stdlib, always available)
postgresql      PostgreSQL adapter (requires psycopg2)
mysql           MySQL / MariaDB adapter (requires mysql-connector-python)

Guardrails:
    ❌ ``conn.execute(text("... WHERE id=" + user_input))``
    ✅ ``conn.execute(text("... WHERE id = :id"), {"id": user_input})``
    ❌ ``adapter = PostgreSQLAdapter(...)`` directly
    ✅ ``adapter = get_adapter("pg", params, pool)``

Tags:
    database, adapters, multi-backend, registry-pattern, postgresql, sqlite,
    mysql, dbmanager

Doc-Types:
    package-overview, architecture-map, module-index
"""

from dbmanager.core.dialect import Dialect, get_dialect

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType, PoolConfig

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    "PoolConfig",
    # Protocols / Abstractions
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    "MySQLAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
