"""Tests for catalog inspection and ``id`` repair."""

from __future__ import annotations

import pytest

from dbmanager.core.backends import BackendRegistry
from dbmanager.core.catalog import CatalogInspector, RepairReport, repair_all
from dbmanager.core.errors import DbManagerError, NotFoundError, QueryError, SchemaError
from dbmanager.core.types import ColumnType


@pytest.fixture
def inspector(backend) -> CatalogInspector:
    return CatalogInspector(backend)


class TestListTables:
    def test_sorted_without_system_tables(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE zeta (id INTEGER PRIMARY KEY AUTOINCREMENT)")
        run_sql(backend, "CREATE TABLE alpha (name TEXT)")
        run_sql(backend, "INSERT INTO zeta DEFAULT VALUES")
        assert inspector.list_tables() == ["alpha", "zeta"]

    def test_empty_database(self, inspector):
        assert inspector.list_tables() == []

    def test_table_exists(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE alpha (name TEXT)")
        assert inspector.table_exists("alpha")
        assert not inspector.table_exists("beta")
        assert not inspector.table_exists("sqlite_sequence")


class TestListColumns:
    def test_table_order_and_types(self, backend, run_sql, inspector):
        run_sql(
            backend,
            "CREATE TABLE books (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "title VARCHAR(255) NOT NULL, price NUMERIC(8, 2), notes)",
        )
        columns = inspector.list_columns("books")
        assert [c.name for c in columns] == ["id", "title", "price", "notes"]
        assert [c.type for c in columns] == [
            ColumnType.INTEGER,
            ColumnType.STRING,
            ColumnType.DECIMAL,
            ColumnType.TEXT,
        ]
        assert columns[0].primary_key
        assert not columns[1].nullable
        assert columns[1].native_type == "VARCHAR(255)"

    def test_missing_table(self, inspector):
        with pytest.raises(NotFoundError) as exc_info:
            inspector.list_columns("ghost")
        assert exc_info.value.context.table == "ghost"

    def test_system_table_hidden(self, inspector):
        with pytest.raises(NotFoundError):
            inspector.list_columns("sqlite_sequence")


class TestEnsureId:
    def test_adds_id_and_keeps_rows(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE legacy (name TEXT NOT NULL, score REAL)")
        run_sql(backend, "INSERT INTO legacy (name, score) VALUES ('a', 1.5), ('b', 2.5)")

        assert inspector.ensure_id("legacy") is True

        columns = inspector.list_columns("legacy")
        assert columns[0].name == "id"
        assert columns[0].primary_key
        assert not columns[1].nullable
        rows = run_sql(backend, "SELECT id, name, score FROM legacy ORDER BY id")
        assert [tuple(r) for r in rows] == [(1, "a", 1.5), (2, "b", 2.5)]
        assert inspector.list_tables() == ["legacy"]

    def test_new_rows_get_next_id(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE legacy (name TEXT)")
        run_sql(backend, "INSERT INTO legacy (name) VALUES ('a')")
        inspector.ensure_id("legacy")
        run_sql(backend, "INSERT INTO legacy (name) VALUES ('b')")
        rows = run_sql(backend, "SELECT id FROM legacy ORDER BY id")
        assert [r[0] for r in rows] == [1, 2]

    def test_noop_when_present(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")
        assert inspector.ensure_id("t") is False
        assert inspector.has_id_column("t")

    def test_children_keep_rows_through_rebuild(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE parent (pid INTEGER PRIMARY KEY, name TEXT)")
        run_sql(
            backend,
            "CREATE TABLE child (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "pid INTEGER REFERENCES parent ON DELETE CASCADE)",
        )
        run_sql(backend, "INSERT INTO parent (pid, name) VALUES (10, 'a'), (20, 'b')")
        run_sql(backend, "INSERT INTO child (pid) VALUES (10)")

        report = inspector.repair()

        assert report.ok
        assert report.repaired == ["parent"]
        assert run_sql(backend, "SELECT COUNT(*) FROM child")[0][0] == 1
        rows = run_sql(backend, "SELECT id, pid FROM parent ORDER BY id")
        assert [tuple(r) for r in rows] == [(10, 10), (20, 20)]

        # Foreign keys are enforced again and still cascade
        with pytest.raises(DbManagerError):
            run_sql(backend, "INSERT INTO child (pid) VALUES (99)")
        run_sql(backend, "DELETE FROM parent WHERE id = 10")
        assert run_sql(backend, "SELECT COUNT(*) FROM child")[0][0] == 0

    def test_indexes_and_constraints_survive(self, backend, run_sql, inspector):
        run_sql(
            backend,
            "CREATE TABLE legacy (code TEXT NOT NULL UNIQUE, name TEXT, "
            "opens TEXT DEFAULT '12:00', CHECK (length(code) > 1))",
        )
        run_sql(backend, "CREATE INDEX ix_legacy_name ON legacy (name)")
        run_sql(backend, "INSERT INTO legacy (code, name) VALUES ('ab', 'x')")

        assert inspector.ensure_id("legacy") is True

        indexes = run_sql(
            backend, "SELECT name FROM sqlite_master WHERE type = 'index' AND sql IS NOT NULL"
        )
        assert [r[0] for r in indexes] == ["ix_legacy_name"]
        with pytest.raises(DbManagerError):
            run_sql(backend, "INSERT INTO legacy (code) VALUES ('ab')")
        with pytest.raises(DbManagerError):
            run_sql(backend, "INSERT INTO legacy (code) VALUES ('z')")
        run_sql(backend, "INSERT INTO legacy (code) VALUES ('cd')")
        assert run_sql(backend, "SELECT opens FROM legacy WHERE code = 'cd'")[0][0] == "12:00"

    def test_broken_references_roll_back(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE tags (code TEXT PRIMARY KEY) WITHOUT ROWID")
        run_sql(backend, "CREATE TABLE items (id INTEGER PRIMARY KEY, tag TEXT REFERENCES tags)")
        run_sql(backend, "INSERT INTO tags (code) VALUES ('a')")
        run_sql(backend, "INSERT INTO items (tag) VALUES ('a')")

        with pytest.raises(SchemaError, match="foreign key") as exc_info:
            inspector.ensure_id("tags")

        assert exc_info.value.details["violations"]
        assert not inspector.has_id_column("tags")
        assert run_sql(backend, "SELECT COUNT(*) FROM items")[0][0] == 1


class TestRepair:
    def test_repairs_only_missing(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE good (id INTEGER PRIMARY KEY AUTOINCREMENT, v TEXT)")
        run_sql(backend, "CREATE TABLE legacy (v TEXT)")

        report = inspector.repair()

        assert report.ok
        assert report.checked == ["good", "legacy"]
        assert report.repaired == ["legacy"]

    def test_idempotent(self, backend, run_sql, inspector):
        run_sql(backend, "CREATE TABLE legacy (v TEXT)")
        inspector.repair()
        second = inspector.repair()
        assert second.repaired == []
        assert second.ok

    def test_many_tables_concurrently(self, backend, run_sql, inspector):
        for i in range(12):
            run_sql(backend, f"CREATE TABLE t{i:02d} (v TEXT)")
            run_sql(backend, f"INSERT INTO t{i:02d} (v) VALUES ('x')")
        report = inspector.repair()
        assert report.ok
        assert sorted(report.repaired) == [f"t{i:02d}" for i in range(12)]
        assert all(inspector.has_id_column(f"t{i:02d}") for i in range(12))

    def test_table_failure_does_not_abort(self, backend, run_sql, inspector, monkeypatch):
        run_sql(backend, "CREATE TABLE broken (v TEXT)")
        run_sql(backend, "CREATE TABLE legacy (v TEXT)")
        original = CatalogInspector.ensure_id

        def flaky(self, table):
            if table == "broken":
                raise QueryError("Statement rejected by the database")
            return original(self, table)

        monkeypatch.setattr(CatalogInspector, "ensure_id", flaky)
        report = inspector.repair()

        assert report.repaired == ["legacy"]
        assert report.failed == {"broken": "Statement rejected by the database"}
        assert not report.ok

    def test_unreachable_backend_reported(self, tmp_path):
        registry = BackendRegistry()
        registry.register("down", "sqlite", {"filename": str(tmp_path / "missing" / "x.db")})
        try:
            (report,) = repair_all(registry)
        finally:
            registry.close()
        assert report.backend == "down"
        assert report.error is not None
        assert report.checked == []

    def test_report_to_dict(self):
        report = RepairReport(backend="main", checked=["a"], repaired=["a"])
        assert report.to_dict() == {
            "backend": "main",
            "checked": ["a"],
            "repaired": ["a"],
            "failed": {},
            "error": None,
        }


def test_repair_all_in_registration_order(registry, backend, run_sql):
    run_sql(backend, "CREATE TABLE legacy (v TEXT)")
    reports = repair_all(registry)
    assert [r.backend for r in reports] == ["main"]
    assert reports[0].repaired == ["legacy"]
