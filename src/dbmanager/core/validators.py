"""
Request validators.

Shape checks for everything a caller sends before any statement runs:
identifiers, column lists, column changes, row payloads, row ids and
pagination.  Each check returns the normalized value or raises
:class:`~dbmanager.core.errors.ValidationError` naming the offending
``field`` and the ``expected`` shape.

Checks that need the live table (does the column exist?) belong to the
data and schema operations; this module never touches a backend.

Examples:
    >>> validate_identifier("order_items")
    'order_items'
    >>> validate_row_ids([3, 1])
    [3, 1]
    >>> validate_page(2, 30).offset
    30

Tags:
    validation, identifiers, payload, dbmanager
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from dbmanager.core.errors import ValidationError
from dbmanager.core.types import (
    ID_COLUMN,
    MAX_ROWS_PER_PAGE,
    SYSTEM_TABLES,
    ChangeAction,
    ColumnChange,
    ColumnDescriptor,
    ColumnType,
    PageRequest,
    Scalar,
    TableDescriptor,
)

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_]+")
MAX_IDENTIFIER_LENGTH = 63
# Largest OFFSET every backend accepts (signed 64-bit)
MAX_OFFSET = 2**63 - 1

_IDENTIFIER_EXPECTED = f"1-{MAX_IDENTIFIER_LENGTH} characters of A-Z, a-z, 0-9 or _"
_TYPES_EXPECTED = "one of: " + ", ".join(ColumnType.definable())


def validate_identifier(value: Any, field: str = "name") -> str:
    """Check a table or column name against the identifier grammar."""
    if not isinstance(value, str):
        raise ValidationError(
            f"{field} must be a string", field=field, expected=_IDENTIFIER_EXPECTED
        )
    # fullmatch: "$" alone would accept a trailing newline
    if len(value) > MAX_IDENTIFIER_LENGTH or not IDENTIFIER_PATTERN.fullmatch(value):
        raise ValidationError(
            f"Invalid {field}: {value!r}", field=field, expected=_IDENTIFIER_EXPECTED
        )
    return value


def validate_table_name(value: Any, field: str = "table") -> str:
    """Identifier check plus rejection of system tables."""
    name = validate_identifier(value, field)
    if name in SYSTEM_TABLES:
        raise ValidationError(
            f"Table '{name}' is a system table", field=field, expected="a user table"
        )
    return name


def _column_type(value: Any, field: str) -> ColumnType:
    if isinstance(value, str):
        try:
            column_type = ColumnType(value.strip().lower())
        except ValueError:
            pass
        else:
            if column_type is not ColumnType.OTHER:
                return column_type
    raise ValidationError(
        f"Unsupported column type: {value!r}", field=field, expected=_TYPES_EXPECTED
    )


def validate_column_list(raw: Any, field: str = "columnList") -> tuple[ColumnDescriptor, ...]:
    """Parse ``[{name, type}, ...]`` into column descriptors.

    Names must be unique; an explicit ``id`` column must be ``integer``.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError(
            f"{field} must be a non-empty list",
            field=field,
            expected="[{name, type}, ...] with at least one column",
        )

    columns: list[ColumnDescriptor] = []
    seen: set[str] = set()
    for index, item in enumerate(raw):
        item_field = f"{field}[{index}]"
        if not isinstance(item, Mapping):
            raise ValidationError(
                f"{item_field} must be an object", field=item_field, expected="{name, type}"
            )
        name = validate_identifier(item.get("name"), f"{item_field}.name")
        column_type = _column_type(item.get("type"), f"{item_field}.type")
        if name in seen:
            raise ValidationError(
                f"Duplicate column name: '{name}'",
                field=f"{item_field}.name",
                expected="unique column names",
            )
        if name == ID_COLUMN and column_type is not ColumnType.INTEGER:
            raise ValidationError(
                f"Column '{ID_COLUMN}' must be of type integer",
                field=f"{item_field}.type",
                expected=ColumnType.INTEGER.value,
            )
        seen.add(name)
        columns.append(ColumnDescriptor(name=name, type=column_type))
    return tuple(columns)


def validate_table_definition(table: Any, raw_columns: Any) -> TableDescriptor:
    """Table name plus column list."""
    return TableDescriptor(
        name=validate_table_name(table), columns=validate_column_list(raw_columns)
    )


def validate_column_changes(raw: Any, field: str = "changes") -> list[ColumnChange]:
    """Parse ``[{action, name, type?, new_name?}, ...]``."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError(
            f"{field} must be a non-empty list",
            field=field,
            expected="[{action: add|rename|drop, name, type?, new_name?}, ...]",
        )

    changes: list[ColumnChange] = []
    for index, item in enumerate(raw):
        item_field = f"{field}[{index}]"
        if not isinstance(item, Mapping):
            raise ValidationError(
                f"{item_field} must be an object",
                field=item_field,
                expected="{action, name, type?, new_name?}",
            )
        action_value = item.get("action")
        try:
            action = ChangeAction(str(action_value).lower())
        except ValueError:
            raise ValidationError(
                f"Unknown action: {action_value!r}",
                field=f"{item_field}.action",
                expected="add, rename or drop",
            ) from None
        name = validate_identifier(item.get("name"), f"{item_field}.name")

        match action:
            case ChangeAction.ADD:
                changes.append(
                    ColumnChange(action, name, type=_column_type(item.get("type"), f"{item_field}.type"))
                )
            case ChangeAction.RENAME:
                new_name = item.get("new_name", item.get("newName"))
                changes.append(
                    ColumnChange(
                        action, name, new_name=validate_identifier(new_name, f"{item_field}.new_name")
                    )
                )
            case ChangeAction.DROP:
                changes.append(ColumnChange(action, name))
    return changes


def validate_row_payload(raw: Any, field: str = "body") -> dict[str, Scalar]:
    """Flat mapping of column names to scalar values."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError(
            "Row payload must be an object", field=field, expected="{column: value, ...}"
        )
    payload: dict[str, Scalar] = {}
    for key, value in raw.items():
        name = validate_identifier(key, f"{field}.{key}")
        if value is not None and not isinstance(value, (bool, int, float, str)):
            raise ValidationError(
                f"Value of '{name}' must be a scalar",
                field=f"{field}.{name}",
                expected="null, boolean, number or string",
            )
        payload[name] = value
    return payload


def validate_row_id(raw: Any, field: str = "id") -> int:
    """A single row identifier."""
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValidationError(f"Invalid row id: {raw!r}", field=field, expected="an integer")
    return raw


def validate_row_ids(raw: Any, field: str = "ids") -> list[int]:
    """Non-empty list of integer row identifiers (booleans rejected)."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError(
            f"{field} must be a non-empty list", field=field, expected="[integer, ...]"
        )
    return [validate_row_id(value, f"{field}[{index}]") for index, value in enumerate(raw)]


def validate_page(page: Any = 1, rows_per_page: Any = 30) -> PageRequest:
    """Page number >= 1 and 1..MAX_ROWS_PER_PAGE rows, with an offset that fits MAX_OFFSET."""
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError(f"Invalid page: {page!r}", field="page", expected="an integer >= 1")
    if (
        isinstance(rows_per_page, bool)
        or not isinstance(rows_per_page, int)
        or not 0 < rows_per_page <= MAX_ROWS_PER_PAGE
    ):
        raise ValidationError(
            f"Invalid rows per page: {rows_per_page!r}",
            field="rows",
            expected=f"an integer between 1 and {MAX_ROWS_PER_PAGE}",
        )
    if (page - 1) * rows_per_page > MAX_OFFSET:
        raise ValidationError(
            f"Invalid page: {page!r}",
            field="page",
            expected=f"an integer between 1 and {MAX_OFFSET // rows_per_page + 1}",
        )
    return PageRequest(page=page, rows_per_page=rows_per_page)


__all__ = [
    "IDENTIFIER_PATTERN",
    "MAX_IDENTIFIER_LENGTH",
    "MAX_OFFSET",
    "validate_identifier",
    "validate_table_name",
    "validate_column_list",
    "validate_table_definition",
    "validate_column_changes",
    "validate_row_payload",
    "validate_row_id",
    "validate_row_ids",
    "validate_page",
]
