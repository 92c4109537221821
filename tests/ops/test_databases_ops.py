"""Tests for dbmanager.ops.databases."""

from __future__ import annotations

from dbmanager.core.backends import BackendRegistry
from dbmanager.ops.context import OperationContext
from dbmanager.ops.databases import list_databases, repair_databases
from dbmanager.ops.requests import RepairRequest


def test_list_databases(ctx):
    result = list_databases(ctx)
    assert result.success
    assert result.data == ["main"]


def test_list_databases_in_registration_order(tmp_path):
    registry = BackendRegistry()
    for name in ["zeta", "alpha"]:
        registry.register(name, "sqlite", {"filename": str(tmp_path / f"{name}.db")})
    try:
        assert list_databases(OperationContext(registry=registry)).data == ["zeta", "alpha"]
    finally:
        registry.close()


class TestRepairDatabases:
    def test_repairs_legacy_table(self, ctx, backend, run_sql):
        run_sql(backend, "CREATE TABLE legacy (v TEXT)")
        result = repair_databases(ctx)
        assert result.success
        (report,) = result.data
        assert report.repaired == ["legacy"]
        assert result.warnings == []

    def test_single_database(self, ctx):
        result = repair_databases(ctx, RepairRequest(database="main"))
        assert [r.backend for r in result.data] == ["main"]

    def test_unknown_database(self, ctx):
        result = repair_databases(ctx, RepairRequest(database="nope"))
        assert result.error.code == "NOT_FOUND"

    def test_unreachable_backend_is_warning(self, tmp_path):
        registry = BackendRegistry()
        registry.register("ok", "sqlite", {"filename": str(tmp_path / "ok.db")})
        registry.register("down", "sqlite", {"filename": str(tmp_path / "missing" / "x.db")})
        try:
            result = repair_databases(OperationContext(registry=registry))
        finally:
            registry.close()
        assert result.success
        assert [r.backend for r in result.data] == ["ok", "down"]
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("down: ")
