"""Tests for row listing, counting and mutation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from dbmanager.core import data, schema
from dbmanager.core.backends import BackendRegistry
from dbmanager.core.errors import NotFoundError, ValidationError
from dbmanager.core.types import ColumnDescriptor, ColumnType, PageRequest, TableDescriptor


@pytest.fixture(autouse=True)
def items(backend):
    schema.create_table(
        backend,
        TableDescriptor(
            "items",
            (
                ColumnDescriptor("name", ColumnType.STRING),
                ColumnDescriptor("qty", ColumnType.INTEGER),
            ),
        ),
    )


def _ids(page) -> list[int]:
    return [row["id"] for row in page.rows]


class TestInsertRow:
    def test_returns_first_page(self, backend):
        page = data.insert_row(backend, "items", {"name": "bolt", "qty": 3})
        assert page.rows == [{"id": 1, "name": "bolt", "qty": 3}]
        assert page.page == 1
        assert page.total_count is None

    def test_empty_payload_inserts_defaults(self, backend):
        page = data.insert_row(backend, "items", {})
        assert page.rows == [{"id": 1, "name": None, "qty": None}]

    def test_none_payload_inserts_defaults(self, backend):
        assert len(data.insert_row(backend, "items", None).rows) == 1

    def test_unknown_column_inserts_nothing(self, backend):
        with pytest.raises(ValidationError) as exc_info:
            data.insert_row(backend, "items", {"name": "bolt", "colour": "red"})
        assert exc_info.value.field == "colour"
        assert "name" in exc_info.value.expected
        assert data.count_rows(backend, "items") == 0

    def test_id_rejected(self, backend):
        with pytest.raises(ValidationError, match="assigned by the database"):
            data.insert_row(backend, "items", {"id": 5, "name": "bolt"})

    def test_missing_table(self, backend):
        with pytest.raises(NotFoundError):
            data.insert_row(backend, "ghost", {"name": "x"})

    def test_requested_page(self, backend):
        for i in range(4):
            data.insert_row(backend, "items", {"qty": i})
        page = data.insert_row(backend, "items", {"qty": 4}, PageRequest(page=2, rows_per_page=2))
        assert _ids(page) == [3, 4]


class TestUpdateRow:
    @pytest.fixture(autouse=True)
    def rows(self, backend):
        data.insert_row(backend, "items", {"name": "bolt", "qty": 1})
        data.insert_row(backend, "items", {"name": "nut", "qty": 2})

    def test_update(self, backend):
        page = data.update_row(backend, "items", 2, {"qty": 20})
        assert page.rows[1] == {"id": 2, "name": "nut", "qty": 20}
        assert page.rows[0]["qty"] == 1

    def test_matching_payload_id_ignored(self, backend):
        page = data.update_row(backend, "items", 1, {"id": 1, "name": "screw"})
        assert page.rows[0]["name"] == "screw"

    def test_mismatched_payload_id(self, backend):
        with pytest.raises(ValidationError) as exc_info:
            data.update_row(backend, "items", 1, {"id": 2, "name": "screw"})
        assert exc_info.value.field == "id"

    def test_missing_row(self, backend):
        with pytest.raises(NotFoundError, match="Row 99"):
            data.update_row(backend, "items", 99, {"qty": 1})

    def test_empty_payload_checks_existence(self, backend):
        assert len(data.update_row(backend, "items", 1, {}).rows) == 2
        with pytest.raises(NotFoundError):
            data.update_row(backend, "items", 99, {})

    def test_null_value(self, backend):
        page = data.update_row(backend, "items", 1, {"name": None})
        assert page.rows[0]["name"] is None

    def test_bad_row_id(self, backend):
        with pytest.raises(ValidationError):
            data.update_row(backend, "items", "1", {"qty": 1})


class TestDeleteRows:
    @pytest.fixture(autouse=True)
    def rows(self, backend):
        for name in ["a", "b", "c"]:
            data.insert_row(backend, "items", {"name": name})

    def test_delete(self, backend):
        page = data.delete_rows(backend, "items", [1, 3])
        assert _ids(page) == [2]

    def test_unknown_ids_ignored(self, backend):
        page = data.delete_rows(backend, "items", [2, 99, 2])
        assert _ids(page) == [1, 3]

    def test_idempotent(self, backend):
        data.delete_rows(backend, "items", [2])
        page = data.delete_rows(backend, "items", [2])
        assert _ids(page) == [1, 3]

    @pytest.mark.parametrize("ids", [[], None, "1", [1, "2"]])
    def test_invalid_ids(self, backend, ids):
        with pytest.raises(ValidationError):
            data.delete_rows(backend, "items", ids)
        assert data.count_rows(backend, "items") == 3


class TestListData:
    @pytest.fixture(autouse=True)
    def rows(self, backend):
        for i in range(5):
            data.insert_row(backend, "items", {"name": f"n{i}", "qty": i})

    def test_default_page(self, backend):
        page = data.list_data(backend, "items")
        assert _ids(page) == [1, 2, 3, 4, 5]
        assert page.columns == ["id", "name", "qty"]
        assert page.total_count is None

    def test_pagination(self, backend):
        page = data.list_data(backend, "items", PageRequest(page=2, rows_per_page=2))
        assert _ids(page) == [3, 4]
        assert (page.page, page.rows_per_page) == (2, 2)

    def test_past_last_page(self, backend):
        assert data.list_data(backend, "items", PageRequest(page=9, rows_per_page=2)).rows == []

    def test_with_count(self, backend):
        page = data.list_data(backend, "items", PageRequest(1, 2), with_count=True)
        assert page.total_count == 5

    def test_missing_table(self, backend):
        with pytest.raises(NotFoundError):
            data.list_data(backend, "ghost")

    def test_list_columns(self, backend):
        assert [c.name for c in data.list_columns(backend, "items")] == ["id", "name", "qty"]


class TestCountRows:
    def test_empty(self, backend):
        assert data.count_rows(backend, "items") == 0

    def test_missing_table(self, backend):
        with pytest.raises(NotFoundError):
            data.count_rows(backend, "ghost")


def test_concurrent_inserts_on_memory_backend():
    registry = BackendRegistry()
    memory = registry.register("mem", "sqlite3", {"filename": ":memory:"})
    try:
        schema.create_table(
            memory, TableDescriptor("items", (ColumnDescriptor("name", ColumnType.STRING),))
        )

        def insert_many(worker: int) -> None:
            for i in range(20):
                data.insert_row(memory, "items", {"name": f"w{worker}-{i}"})

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(insert_many, range(8)))

        assert data.count_rows(memory, "items") == 160
        page = data.list_data(memory, "items", PageRequest(1, 1000))
        assert len(set(_ids(page))) == 160
    finally:
        registry.close()
