"""Shared fixtures for API tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from dbmanager.api.app import create_app
from dbmanager.api.settings import DbManagerSettings
from dbmanager.core.backends import BackendRegistry

PREFIX = "/dbadmin"


@pytest.fixture
def settings() -> DbManagerSettings:
    return DbManagerSettings(api_prefix=PREFIX, log_level="WARNING", log_json=True)


@pytest.fixture
def client(settings: DbManagerSettings, registry: BackendRegistry) -> Iterator[TestClient]:
    """TestClient running the lifespan against the ``main`` SQLite backend."""
    app = create_app(settings=settings, registry=registry)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def books(client: TestClient) -> str:
    """Create ``main.books`` (id, title, qty) through the API."""
    response = client.post(
        f"{PREFIX}/api/main/books",
        json={"columnList": [{"name": "title", "type": "string"}, {"name": "qty", "type": "integer"}]},
    )
    assert response.json()["code"] == 200
    return "books"
