"""
Tests for the FastAPI application factory and lifespan.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from dbmanager.api.app import create_app
from dbmanager.api.settings import DbManagerSettings
from dbmanager.core.config import BackendConfig
from dbmanager.core.errors import ConfigError


class TestCreateApp:
    def test_returns_fastapi_instance(self, settings):
        assert isinstance(create_app(settings=settings), FastAPI)

    def test_openapi_under_prefix(self, settings):
        app = create_app(settings=settings)
        assert app.openapi_url == "/dbadmin/openapi.json"

    def test_custom_settings(self):
        app = create_app(settings=DbManagerSettings(api_prefix="/v2", api_title="Custom"))
        assert app.title == "Custom"
        paths = [r.path for r in app.routes]
        assert "/v2/api/database" in paths

    def test_routes_registered(self, settings):
        paths = {r.path for r in create_app(settings=settings).routes}
        for path in [
            "/health",
            "/dbadmin/api",
            "/dbadmin/api/database",
            "/dbadmin/api/{db}/table",
            "/dbadmin/api/{db}/{table}",
            "/dbadmin/api/{db}/{table}/column",
            "/dbadmin/api/{db}/{table}/data",
            "/dbadmin/api/{db}/{table}/data/count",
            "/dbadmin/api/{db}/{table}/data/{row_id}",
        ]:
            assert path in paths

    def test_cors_middleware_present(self, settings):
        middleware_classes = [m.cls.__name__ for m in create_app(settings=settings).user_middleware]
        assert "CORSMiddleware" in middleware_classes
        assert "RequestIDMiddleware" in middleware_classes

    def test_settings_on_state(self):
        app = create_app(settings=DbManagerSettings(debug=True))
        assert app.state.settings.debug is True


class TestLifespan:
    def test_builds_registry_from_settings(self, tmp_path: Path):
        settings = DbManagerSettings(
            databases=[
                BackendConfig(name="a", client="sqlite3", connection={"filename": str(tmp_path / "a.db")}),
                BackendConfig(name="b", client="sqlite", connection={"filename": str(tmp_path / "b.db")}),
            ]
        )
        app = create_app(settings=settings)
        with TestClient(app) as client:
            body = client.get("/dbadmin/api/database").json()
            assert body == {"code": 200, "data": ["a", "b"]}
            registry = app.state.registry
        assert app.state.registry is None
        assert not registry.resolve("a").adapter.is_connected

    def test_config_file(self, tmp_path: Path):
        config = tmp_path / "databases.yaml"
        config.write_text(
            f"databases:\n  - name: filed\n    client: sqlite3\n"
            f"    connection:\n      filename: {tmp_path / 'f.db'}\n",
            encoding="utf-8",
        )
        app = create_app(settings=DbManagerSettings(config_file=str(config)))
        with TestClient(app) as client:
            assert client.get("/dbadmin/api/database").json()["data"] == ["filed"]

    def test_bad_configuration_aborts_startup(self):
        settings = DbManagerSettings(
            databases=[BackendConfig(name="x", client="oracle", connection={})]
        )
        with pytest.raises(ConfigError):
            with TestClient(create_app(settings=settings)):
                pass

    def test_startup_repair(self, registry, backend, run_sql, settings):
        run_sql(backend, "CREATE TABLE legacy (name TEXT)")
        run_sql(backend, "INSERT INTO legacy (name) VALUES ('x')")
        with TestClient(create_app(settings=settings, registry=registry)) as client:
            body = client.get("/dbadmin/api/main/legacy/data").json()
        assert body == {"code": 200, "data": [{"id": 1, "name": "x"}]}

    def test_repair_disabled(self, registry, backend, run_sql):
        run_sql(backend, "CREATE TABLE legacy (name TEXT)")
        settings = DbManagerSettings(repair_on_startup=False)
        with TestClient(create_app(settings=settings, registry=registry)) as client:
            columns = client.get("/dbadmin/api/main/legacy/column").json()["data"]
        assert [c["name"] for c in columns] == ["name"]

    def test_injected_registry_left_open(self, registry, settings):
        with TestClient(create_app(settings=settings, registry=registry)) as client:
            client.get("/dbadmin/api/database")
        assert registry.resolve("main").adapter.is_connected


class TestHealth:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["databases"] == 1

    def test_banner(self, client):
        body = client.get("/dbadmin/api").json()
        assert body["code"] == 200
        assert body["data"]["service"] == "dbmanager API"
