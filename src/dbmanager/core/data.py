"""
Data operations.

Row-level reads and writes on tables whose columns are only known at
request time.  Rows are addressed by the integer ``id`` column alone.

Every mutating operation answers with a fresh page of the table (the first
page unless the caller asks for another), so the caller never has to issue
a follow-up read to see the effect of a change.

Order of checks in every operation:
    1. payload shape (validators, no backend access)
    2. table and columns (live introspection, ``NotFoundError``)
    3. payload keys against the live columns (``ValidationError``)
    4. the statement itself
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import bindparam, text

from dbmanager.core.backends import Backend
from dbmanager.core.catalog import CatalogInspector
from dbmanager.core.errors import NotFoundError, ValidationError
from dbmanager.core.logging import get_logger
from dbmanager.core.types import (
    ID_COLUMN,
    ColumnDescriptor,
    PageRequest,
    PageResult,
    Scalar,
    normalize_row,
)
from dbmanager.core.validators import validate_row_id, validate_row_ids, validate_row_payload

logger = get_logger(__name__)


def list_columns(backend: Backend, table: str) -> list[ColumnDescriptor]:
    """Live column metadata of ``table`` in table order."""
    return CatalogInspector(backend).list_columns(table)


def _column_names(backend: Backend, table: str) -> list[str]:
    return [c.name for c in list_columns(backend, table)]


def _fetch_page(
    backend: Backend,
    table: str,
    columns: list[str],
    page: PageRequest,
    *,
    with_count: bool = False,
) -> PageResult:
    dialect = backend.dialect
    with backend.connection() as conn:
        result = conn.execute(
            text(dialect.select_page(table, columns)),
            {"limit": page.limit, "offset": page.offset},
        )
        rows = [normalize_row(columns, values) for values in result]
        total = conn.execute(text(dialect.count_rows(table))).scalar_one() if with_count else None
    return PageResult(
        rows=rows,
        page=page.page,
        rows_per_page=page.rows_per_page,
        total_count=total,
        columns=columns,
    )


def list_data(
    backend: Backend,
    table: str,
    page: PageRequest | None = None,
    *,
    with_count: bool = False,
) -> PageResult:
    """One page of rows ordered by ``id`` ascending.

    ``total_count`` is only computed when ``with_count`` is set.

    Raises:
        NotFoundError: The table does not exist.
    """
    page = page or PageRequest()
    return _fetch_page(backend, table, _column_names(backend, table), page, with_count=with_count)


def count_rows(backend: Backend, table: str) -> int:
    """Number of rows in ``table``.

    Raises:
        NotFoundError: The table does not exist.
    """
    inspector = CatalogInspector(backend)
    if not inspector.table_exists(table):
        raise NotFoundError(f"Table '{table}' does not exist").with_context(
            backend=backend.name, table=table
        )
    with backend.connection() as conn:
        return int(conn.execute(text(backend.dialect.count_rows(table))).scalar_one())


def _check_columns(
    backend: Backend, table: str, payload: Mapping[str, Scalar], columns: Sequence[str]
) -> None:
    """Payload keys must be existing, non-identifier columns."""
    known = set(columns)
    for key in payload:
        if key not in known:
            raise ValidationError(
                f"Unknown column '{key}' in table '{table}'",
                field=key,
                expected="one of: " + ", ".join(c for c in columns if c != ID_COLUMN),
            ).with_context(backend=backend.name, table=table)
        if key == ID_COLUMN:
            raise ValidationError(
                f"Column '{ID_COLUMN}' is assigned by the database",
                field=key,
                expected="omit the id column",
            ).with_context(backend=backend.name, table=table)


def insert_row(
    backend: Backend,
    table: str,
    payload: Any,
    page: PageRequest | None = None,
) -> PageResult:
    """Insert one row and return ``page`` (first page by default).

    An empty payload inserts a row of column defaults.

    Raises:
        ValidationError: Malformed payload or unknown column; nothing is inserted.
        NotFoundError: The table does not exist.
    """
    values = validate_row_payload(payload)
    columns = _column_names(backend, table)
    _check_columns(backend, table, values, columns)

    keys = list(values)
    statement = text(backend.dialect.insert(table, keys))
    with backend.transaction() as conn:
        conn.execute(statement, {f"p{i}": values[key] for i, key in enumerate(keys)})
    logger.debug("row_inserted", backend=backend.name, table=table, columns=len(keys))
    return _fetch_page(backend, table, columns, page or PageRequest())


def update_row(
    backend: Backend,
    table: str,
    row_id: Any,
    payload: Any,
    page: PageRequest | None = None,
) -> PageResult:
    """Set the payload's columns on the row ``row_id``.

    A payload ``id`` equal to ``row_id`` is ignored; any other ``id`` is a
    :class:`ValidationError`.  An empty payload only checks that the row
    exists.

    Raises:
        ValidationError: Malformed payload, unknown column or id mismatch.
        NotFoundError: The table or the row does not exist.
    """
    row_id = validate_row_id(row_id)
    values = validate_row_payload(payload)
    if ID_COLUMN in values:
        if values[ID_COLUMN] != row_id or isinstance(values[ID_COLUMN], bool):
            raise ValidationError(
                f"Payload id {values[ID_COLUMN]!r} does not match row id {row_id}",
                field=ID_COLUMN,
                expected=str(row_id),
            ).with_context(backend=backend.name, table=table)
        del values[ID_COLUMN]

    columns = _column_names(backend, table)
    _check_columns(backend, table, values, columns)

    dialect = backend.dialect
    keys = list(values)
    params: dict[str, Any] = {f"p{i}": values[key] for i, key in enumerate(keys)}
    params["row_id"] = row_id
    with backend.transaction() as conn:
        if keys:
            matched = conn.execute(text(dialect.update(table, keys)), params).rowcount
        else:
            matched = conn.execute(text(dialect.row_exists(table)), params).first() is not None
    if not matched:
        raise NotFoundError(f"Row {row_id} not found in table '{table}'").with_context(
            backend=backend.name, table=table, row_id=row_id
        )
    logger.debug("row_updated", backend=backend.name, table=table, row_id=row_id)
    return _fetch_page(backend, table, columns, page or PageRequest())


def delete_rows(
    backend: Backend,
    table: str,
    ids: Any,
    page: PageRequest | None = None,
) -> PageResult:
    """Delete rows by id in one statement.  Ids that match nothing are ignored.

    Raises:
        ValidationError: ``ids`` is not a non-empty list of integers.
        NotFoundError: The table does not exist.
    """
    row_ids = validate_row_ids(ids)
    columns = _column_names(backend, table)
    statement = text(backend.dialect.delete_ids(table)).bindparams(
        bindparam("ids", expanding=True)
    )
    with backend.transaction() as conn:
        deleted = conn.execute(statement, {"ids": sorted(set(row_ids))}).rowcount
    logger.debug("rows_deleted", backend=backend.name, table=table, requested=len(row_ids), deleted=deleted)
    return _fetch_page(backend, table, columns, page or PageRequest())


__all__ = [
    "list_columns",
    "list_data",
    "count_rows",
    "insert_row",
    "update_row",
    "delete_rows",
]
