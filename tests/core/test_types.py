"""Tests for portable types, row normalization and pagination."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

import pytest

from dbmanager.core.types import (
    ChangeAction,
    ColumnChange,
    ColumnDescriptor,
    ColumnType,
    PageRequest,
    TableDescriptor,
    normalize_row,
    portable_type,
    to_scalar,
)


class TestToScalar:
    @pytest.mark.parametrize("value", [None, True, 3, 1.5, "text"])
    def test_passthrough(self, value):
        assert to_scalar(value) == value

    def test_decimal(self):
        assert to_scalar(Decimal("1.50")) == 1.5
        assert to_scalar(Decimal("12")) == 12
        assert isinstance(to_scalar(Decimal("12")), int)

    def test_temporal(self):
        assert to_scalar(date(2024, 1, 2)) == "2024-01-02"
        assert to_scalar(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
        assert to_scalar(time(3, 4)) == "03:04:00"

    def test_uuid(self):
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert to_scalar(value) == "12345678-1234-5678-1234-567812345678"

    def test_bytes(self):
        assert to_scalar(b"abc") == "abc"
        assert to_scalar(memoryview(b"abc")) == "abc"
        assert to_scalar(b"\xff\x00") == "/wA="


def test_normalize_row_keeps_column_order():
    row = normalize_row(["id", "price", "name"], (1, Decimal("2.5"), "x"))
    assert list(row) == ["id", "price", "name"]
    assert row == {"id": 1, "price": 2.5, "name": "x"}


class TestPortableType:
    @pytest.mark.parametrize(
        ("native", "expected"),
        [
            ("INTEGER", ColumnType.INTEGER),
            ("int unsigned", ColumnType.INTEGER),
            ("bigint", ColumnType.BIGINTEGER),
            ("character varying", ColumnType.STRING),
            ("VARCHAR(255)", ColumnType.STRING),
            ("text", ColumnType.TEXT),
            ("tinyint(1)", ColumnType.BOOLEAN),
            ("boolean", ColumnType.BOOLEAN),
            ("timestamp with time zone", ColumnType.TIMESTAMP),
            ("DATETIME", ColumnType.DATETIME),
            ("date", ColumnType.DATE),
            ("time without time zone", ColumnType.TIME),
            ("NUMERIC(8, 2)", ColumnType.DECIMAL),
            ("double precision", ColumnType.FLOAT),
            ("REAL", ColumnType.FLOAT),
            ("bytea", ColumnType.BINARY),
            ("BLOB", ColumnType.BINARY),
            ("jsonb", ColumnType.JSON),
            ("uuid", ColumnType.UUID),
            ("CHAR(36)", ColumnType.UUID),
            ("interval", ColumnType.OTHER),
            ("point", ColumnType.OTHER),
            ("tsvector", ColumnType.OTHER),
        ],
    )
    def test_mapping(self, native, expected):
        assert portable_type(native) is expected

    def test_untyped_sqlite_column(self):
        assert portable_type("") is ColumnType.TEXT
        assert portable_type(None) is ColumnType.TEXT


class TestPageRequest:
    def test_offset_and_limit(self):
        page = PageRequest(page=3, rows_per_page=30)
        assert page.offset == 60
        assert page.limit == 30

    def test_defaults(self):
        assert PageRequest().offset == 0

    def test_total_pages(self):
        assert PageRequest(rows_per_page=10).total_pages(21) == 3
        assert PageRequest(rows_per_page=10).total_pages(0) == 0


class TestDescriptors:
    def test_column_to_dict(self):
        column = ColumnDescriptor("name", ColumnType.STRING, native_type="varchar(255)")
        assert column.to_dict() == {
            "name": "name",
            "type": "string",
            "native_type": "varchar(255)",
            "nullable": True,
            "primary_key": False,
        }

    def test_table_has_column(self):
        table = TableDescriptor("t", (ColumnDescriptor("a", ColumnType.TEXT),))
        assert table.has_column("a")
        assert not table.has_column("id")

    def test_change_to_dict_omits_unset(self):
        assert ColumnChange(ChangeAction.DROP, "a").to_dict() == {"action": "drop", "name": "a"}
        rename = ColumnChange(ChangeAction.RENAME, "a", new_name="b")
        assert rename.to_dict() == {"action": "rename", "name": "a", "new_name": "b"}

    def test_definable_excludes_other(self):
        assert "other" not in ColumnType.definable()
        assert "uuid" in ColumnType.definable()
