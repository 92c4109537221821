"""SQL dialect strategies for the generic table engine.

Provides a ``Dialect`` protocol and one implementation per supported
backend family.  Engine code asks the dialect for complete statements
(catalog queries, DDL, CRUD) and executes them through SQLAlchemy
``text()`` with named bind parameters, so no module outside this one
contains backend-specific syntax.

Manifesto:
    Table and column names arrive at request time and cannot be bound as
    parameters.  They are validated against a strict grammar before they
    reach this module and are always quoted here.  Values are never
    interpolated: every statement uses ``:name`` binds.

    - **One interface:** Dialect protocol for all SQL generation
    - **Portable types:** ``ColumnType`` <-> native type names
    - **Repair rules:** how to give an existing table an ``id`` column

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                        Dialect Strategy                          │
    └──────────────────────────────────────────────────────────────────┘

    Engine code:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = dialect.insert("users", ["name", "age"])               │
    │  conn.execute(text(sql), {"p0": "Ann", "p1": 31})              │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
    ┌──────────────────┐ ┌──────────────────────┐ ┌──────────────────┐
    │ SQLite           │ │ PostgreSQL           │ │ MySQL            │
    │ "ident"          │ │ "ident"              │ │ `ident`          │
    │ sqlite_master    │ │ information_schema   │ │ information_sch. │
    │ AUTOINCREMENT    │ │ SERIAL               │ │ AUTO_INCREMENT   │
    │ repair: rebuild  │ │ repair: ADD COLUMN   │ │ repair: ADD ...  │
    └──────────────────┘ └──────────────────────┘ └──────────────────┘

Examples:
    >>> from dbmanager.core.dialect import get_dialect
    >>> d = get_dialect("pg")
    >>> d.quote("users")
    '"users"'
    >>> get_dialect("mysql").count_rows("users")
    'SELECT COUNT(*) FROM `users`'

Guardrails:
    ❌ DON'T: Format row values into SQL strings
    ✅ DO: Use the ``:pN`` binds the statements declare

    ❌ DON'T: Pass unvalidated identifiers to ``quote()``
    ✅ DO: Run them through ``dbmanager.core.validators`` first

Tags:
    dialect, sql, ddl, catalog, portability, dbmanager

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from dbmanager.core.errors import ConfigError, SchemaError
from dbmanager.core.types import ID_COLUMN, ColumnDescriptor, ColumnType

# Tokens of a stored SQLite CREATE TABLE that the id rebuild rewrites.
# Quoted names, string literals and comments match first and stay unnamed.
_SQLITE_DDL_TOKENS = re.compile(
    r"'(?:[^']|'')*'"
    r'|"(?:[^"]|"")*"'
    r"|`(?:[^`]|``)*`"
    r"|\[[^\]]*\]"
    r"|--[^\n]*"
    r"|/\*.*?\*/"
    r"|(?P<pk>\bPRIMARY\s+KEY(?:\s+(?:ASC|DESC)\b)?)"
    r"|(?P<auto>\bAUTOINCREMENT\b)"
    r"|(?P<rowid>(?:,\s*)?\bWITHOUT\s+ROWID\b(?:\s*,)?)"
    r"|(?P<open>\()",
    re.IGNORECASE | re.DOTALL,
)


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns complete SQL text.  Statements that take values
    declare them as named binds, documented per method.
    """

    @property
    def name(self) -> str:
        """Canonical dialect name (``'sqlite'``, ``'postgresql'``, ``'mysql'``)."""
        ...

    # -- Identifiers and types ---------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote a table or column name."""
        ...

    def native_type(self, column_type: ColumnType) -> str:
        """Native DDL type for a portable column type.

        Raises:
            SchemaError: The dialect has no mapping for ``column_type``.
        """
        ...

    def auto_increment(self) -> str:
        """Column definition of the integer auto-incrementing ``id``."""
        ...

    # -- Catalog -----------------------------------------------------------

    def list_tables(self) -> str:
        """Query returning one table name per row (system tables included)."""
        ...

    def table_exists(self) -> str:
        """Query with a ``:table`` bind returning a row iff the table exists."""
        ...

    def list_columns(self) -> str:
        """Query with a ``:table`` bind returning columns in table order.

        Each row is ``(name, native_type, nullable, primary_key)``.
        """
        ...

    # -- DDL ---------------------------------------------------------------

    def create_table(self, table: str, columns: Sequence[ColumnDescriptor]) -> str:
        """``CREATE TABLE``; the ``id`` column becomes the auto-increment key."""
        ...

    def drop_table(self, table: str) -> str: ...

    def add_column(self, table: str, column: ColumnDescriptor) -> str: ...

    def rename_column(self, table: str, name: str, new_name: str) -> str: ...

    def drop_column(self, table: str, name: str) -> str: ...

    def table_definitions(self) -> str | None:
        """Query with a ``:table`` bind returning the stored DDL of a table.

        One ``sql`` text per row: the table first, then its indexes and
        triggers.  ``None`` for dialects that alter tables in place.
        """
        ...

    def add_id_column(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],
        definitions: Sequence[str] = (),
    ) -> list[str]:
        """Statements giving an existing table an ``id`` key.

        ``columns`` is the current column list from introspection and
        ``definitions`` the rows of :meth:`table_definitions`; dialects that
        have to rebuild the table use them to copy data, constraints, indexes
        and triggers.  The caller runs the statements in one transaction with
        foreign key enforcement suspended.
        """
        ...

    # -- DML ---------------------------------------------------------------

    def select_page(self, table: str, columns: Sequence[str]) -> str:
        """Rows ordered by ``id`` with ``:limit`` and ``:offset`` binds."""
        ...

    def count_rows(self, table: str) -> str: ...

    def row_exists(self, table: str) -> str:
        """Query with a ``:row_id`` bind returning a row iff the id exists."""
        ...

    def insert(self, table: str, columns: Sequence[str]) -> str:
        """``INSERT`` with binds ``:p0 .. :pN``; no columns inserts defaults."""
        ...

    def update(self, table: str, columns: Sequence[str]) -> str:
        """``UPDATE`` with binds ``:p0 .. :pN`` and ``:row_id``."""
        ...

    def delete_ids(self, table: str) -> str:
        """``DELETE`` with an expanding ``:ids`` bind."""
        ...


# =========================================================================
# Shared implementation
# =========================================================================


class _SQLDialect:
    """Statements that read the same in every supported backend.

    Subclasses set ``_quote_char`` and ``_types`` and override what differs.
    """

    _name = ""
    _quote_char = '"'
    _types: dict[ColumnType, str] = {}

    @property
    def name(self) -> str:
        return self._name

    def quote(self, identifier: str) -> str:
        q = self._quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def native_type(self, column_type: ColumnType) -> str:
        try:
            return self._types[column_type]
        except KeyError:
            raise SchemaError(
                f"Column type '{column_type.value}' is not supported by {self.name}"
            ) from None

    def auto_increment(self) -> str:
        raise NotImplementedError

    def _column_definition(self, column: ColumnDescriptor) -> str:
        if column.name == ID_COLUMN:
            return f"{self.quote(ID_COLUMN)} {self.auto_increment()}"
        return f"{self.quote(column.name)} {self.native_type(column.type)}"

    # -- DDL ---------------------------------------------------------------

    def create_table(self, table: str, columns: Sequence[ColumnDescriptor]) -> str:
        body = ", ".join(self._column_definition(c) for c in columns)
        return f"CREATE TABLE {self.quote(table)} ({body})"

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE {self.quote(table)}"

    def add_column(self, table: str, column: ColumnDescriptor) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} "
            f"ADD COLUMN {self.quote(column.name)} {self.native_type(column.type)}"
        )

    def rename_column(self, table: str, name: str, new_name: str) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} "
            f"RENAME COLUMN {self.quote(name)} TO {self.quote(new_name)}"
        )

    def drop_column(self, table: str, name: str) -> str:
        return f"ALTER TABLE {self.quote(table)} DROP COLUMN {self.quote(name)}"

    def table_definitions(self) -> str | None:
        return None

    # -- DML ---------------------------------------------------------------

    def select_page(self, table: str, columns: Sequence[str]) -> str:
        cols = ", ".join(self.quote(c) for c in columns) or "*"
        return (
            f"SELECT {cols} FROM {self.quote(table)} "
            f"ORDER BY {self.quote(ID_COLUMN)} ASC LIMIT :limit OFFSET :offset"
        )

    def count_rows(self, table: str) -> str:
        return f"SELECT COUNT(*) FROM {self.quote(table)}"

    def row_exists(self, table: str) -> str:
        return (
            f"SELECT 1 FROM {self.quote(table)} "
            f"WHERE {self.quote(ID_COLUMN)} = :row_id"
        )

    def insert(self, table: str, columns: Sequence[str]) -> str:
        if not columns:
            return self._insert_defaults(table)
        cols = ", ".join(self.quote(c) for c in columns)
        binds = ", ".join(f":p{i}" for i in range(len(columns)))
        return f"INSERT INTO {self.quote(table)} ({cols}) VALUES ({binds})"

    def _insert_defaults(self, table: str) -> str:
        return f"INSERT INTO {self.quote(table)} DEFAULT VALUES"

    def update(self, table: str, columns: Sequence[str]) -> str:
        assignments = ", ".join(f"{self.quote(c)} = :p{i}" for i, c in enumerate(columns))
        return (
            f"UPDATE {self.quote(table)} SET {assignments} "
            f"WHERE {self.quote(ID_COLUMN)} = :row_id"
        )

    def delete_ids(self, table: str) -> str:
        return f"DELETE FROM {self.quote(table)} WHERE {self.quote(ID_COLUMN)} IN :ids"

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect(_SQLDialect):
    """SQLite dialect: ``sqlite_master`` catalog, repair by table rebuild."""

    _name = "sqlite"
    _types = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINTEGER: "BIGINT",
        ColumnType.TEXT: "TEXT",
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.FLOAT: "REAL",
        ColumnType.DECIMAL: "NUMERIC(8, 2)",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "DATETIME",
        ColumnType.TIME: "TIME",
        ColumnType.TIMESTAMP: "DATETIME",
        ColumnType.BINARY: "BLOB",
        ColumnType.JSON: "TEXT",
        ColumnType.UUID: "CHAR(36)",
    }

    def auto_increment(self) -> str:
        return "INTEGER PRIMARY KEY AUTOINCREMENT"

    def list_tables(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"

    def table_exists(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = :table"

    def list_columns(self) -> str:
        return (
            'SELECT name, type, "notnull" = 0, pk > 0 '
            "FROM pragma_table_info(:table) ORDER BY cid"
        )

    def table_definitions(self) -> str:
        return (
            "SELECT sql FROM sqlite_master WHERE tbl_name = :table AND sql IS NOT NULL "
            "ORDER BY CASE type WHEN 'table' THEN 0 WHEN 'index' THEN 1 ELSE 2 END, name"
        )

    def add_id_column(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],
        definitions: Sequence[str] = (),
    ) -> list[str]:
        # ALTER TABLE cannot add a PRIMARY KEY column: rebuild the table from
        # its stored DDL, then recreate the indexes and triggers DROP removed
        if not definitions:
            raise SchemaError(f"No stored definition for table '{table}'")
        create_sql, *dependents = definitions
        staging = f"_dbmanager_rebuild_{table}"
        rebuilt, has_rowid = self._rebuild_definition(create_sql, staging)
        targets = [self.quote(c.name) for c in columns]
        sources = list(targets)
        taken = {c.name.lower() for c in columns}
        rowid = next((a for a in ("rowid", "_rowid_", "oid") if a not in taken), None)
        if has_rowid and rowid is not None:
            # id takes over the rowid, so an INTEGER PRIMARY KEY keeps its values
            # and implicit REFERENCES to the old key stay valid
            targets.insert(0, self.quote(ID_COLUMN))
            sources.insert(0, rowid)
        return [
            rebuilt,
            f"INSERT INTO {self.quote(staging)} ({', '.join(targets)}) "
            f"SELECT {', '.join(sources)} FROM {self.quote(table)}",
            f"DROP TABLE {self.quote(table)}",
            f"ALTER TABLE {self.quote(staging)} RENAME TO {self.quote(table)}",
            *dependents,
        ]

    def _rebuild_definition(self, create_sql: str, staging: str) -> tuple[str, bool]:
        """``create_sql`` renamed to ``staging`` with ``id`` as its first column.

        ``id`` becomes the only primary key: an existing PRIMARY KEY turns
        into UNIQUE (so foreign keys pointing at it stay valid), and
        AUTOINCREMENT and WITHOUT ROWID, which need that key, are removed.
        Quoted text and comments are copied untouched.

        Returns the new statement and whether the old table had a rowid.
        """
        parts: list[str] = []
        has_rowid = True
        head_done = False
        pos = 0
        for match in _SQLITE_DDL_TOKENS.finditer(create_sql):
            kind = match.lastgroup
            if kind is None:
                continue
            if kind == "open" and not head_done:
                parts.append(
                    f"CREATE TABLE {self.quote(staging)} "
                    f"({self.quote(ID_COLUMN)} {self.auto_increment()}, "
                )
                head_done = True
            elif not head_done:
                continue
            else:
                parts.append(create_sql[pos : match.start()])
                if kind == "pk":
                    parts.append("UNIQUE")
                elif kind == "open":
                    parts.append("(")
                elif kind == "rowid":
                    has_rowid = False
            pos = match.end()
        if not head_done:
            raise SchemaError(f"Cannot parse table definition: {create_sql!r}")
        parts.append(create_sql[pos:])
        return "".join(parts), has_rowid


class PostgreSQLDialect(_SQLDialect):
    """PostgreSQL dialect: tables of schema ``public``, ``SERIAL`` keys."""

    _name = "postgresql"
    _types = {
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINTEGER: "BIGINT",
        ColumnType.TEXT: "TEXT",
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.FLOAT: "REAL",
        ColumnType.DECIMAL: "NUMERIC(8, 2)",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "TIMESTAMPTZ",
        ColumnType.TIME: "TIME",
        ColumnType.TIMESTAMP: "TIMESTAMPTZ",
        ColumnType.BINARY: "BYTEA",
        ColumnType.JSON: "JSON",
        ColumnType.UUID: "UUID",
    }

    def auto_increment(self) -> str:
        return "SERIAL PRIMARY KEY"

    def list_tables(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' AND table_type = 'BASE TABLE' "
            "ORDER BY table_name"
        )

    def table_exists(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = 'public' AND table_type = 'BASE TABLE' "
            "AND table_name = :table"
        )

    def list_columns(self) -> str:
        return (
            "SELECT c.column_name, c.data_type, c.is_nullable = 'YES', "
            "EXISTS ("
            "SELECT 1 FROM information_schema.table_constraints tc "
            "JOIN information_schema.key_column_usage k "
            "ON k.constraint_name = tc.constraint_name "
            "AND k.table_schema = tc.table_schema "
            "WHERE tc.constraint_type = 'PRIMARY KEY' "
            "AND tc.table_schema = c.table_schema "
            "AND tc.table_name = c.table_name "
            "AND k.column_name = c.column_name) "
            "FROM information_schema.columns c "
            "WHERE c.table_schema = 'public' AND c.table_name = :table "
            "ORDER BY c.ordinal_position"
        )

    def add_id_column(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],  # noqa: ARG002
        definitions: Sequence[str] = (),  # noqa: ARG002
    ) -> list[str]:
        return [
            f"ALTER TABLE {self.quote(table)} "
            f"ADD COLUMN {self.quote(ID_COLUMN)} {self.auto_increment()}"
        ]


class MySQLDialect(_SQLDialect):
    """MySQL / MariaDB dialect: backtick quoting, ``AUTO_INCREMENT`` keys."""

    _name = "mysql"
    _quote_char = "`"
    _types = {
        ColumnType.INTEGER: "INT",
        ColumnType.BIGINTEGER: "BIGINT",
        ColumnType.TEXT: "TEXT",
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.FLOAT: "FLOAT",
        ColumnType.DECIMAL: "DECIMAL(8, 2)",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.DATE: "DATE",
        ColumnType.DATETIME: "DATETIME",
        ColumnType.TIME: "TIME",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.BINARY: "BLOB",
        ColumnType.JSON: "JSON",
        ColumnType.UUID: "CHAR(36)",
    }

    def auto_increment(self) -> str:
        return "INT UNSIGNED NOT NULL AUTO_INCREMENT PRIMARY KEY"

    def list_tables(self) -> str:
        return (
            "SELECT TABLE_NAME FROM information_schema.tables "
            "WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE' "
            "ORDER BY TABLE_NAME"
        )

    def table_exists(self) -> str:
        return (
            "SELECT TABLE_NAME FROM information_schema.tables "
            "WHERE table_schema = DATABASE() AND table_type = 'BASE TABLE' "
            "AND TABLE_NAME = :table"
        )

    def list_columns(self) -> str:
        return (
            "SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE = 'YES', COLUMN_KEY = 'PRI' "
            "FROM information_schema.columns "
            "WHERE table_schema = DATABASE() AND TABLE_NAME = :table "
            "ORDER BY ORDINAL_POSITION"
        )

    def add_id_column(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],  # noqa: ARG002
        definitions: Sequence[str] = (),  # noqa: ARG002
    ) -> list[str]:
        return [
            f"ALTER TABLE {self.quote(table)} "
            f"ADD COLUMN {self.quote(ID_COLUMN)} {self.auto_increment()} FIRST"
        ]

    def _insert_defaults(self, table: str) -> str:
        return f"INSERT INTO {self.quote(table)} () VALUES ()"


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_SQLITE = SQLiteDialect()
_POSTGRESQL = PostgreSQLDialect()
_MYSQL = MySQLDialect()

_DIALECTS: dict[str, Dialect] = {
    "sqlite": _SQLITE,
    "sqlite3": _SQLITE,  # alias
    "postgresql": _POSTGRESQL,
    "postgres": _POSTGRESQL,  # alias
    "pg": _POSTGRESQL,  # alias
    "mysql": _MYSQL,
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by backend name or alias.

    Args:
        db_type: One of ``'sqlite'``, ``'sqlite3'``, ``'postgresql'``,
                 ``'postgres'``, ``'pg'``, ``'mysql'`` (case-insensitive).

    Raises:
        ConfigError: If ``db_type`` is not recognised.

    Example:
        >>> get_dialect("sqlite3").name
        'sqlite'
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ConfigError(
            f"Unknown dialect '{db_type}'. Supported: {supported_dialects()}"
        )
    return _DIALECTS[key]


def supported_dialects() -> list[str]:
    """Accepted dialect names, aliases included."""
    return sorted(_DIALECTS)


__all__ = [
    # Protocol
    "Dialect",
    # Implementations
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    # Factory
    "get_dialect",
    "supported_dialects",
]
