"""Tests for backend configuration models and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from dbmanager.core.config import BackendConfig, DatabasesFile, PoolSpec, load_backend_configs
from dbmanager.core.errors import ConfigError

YAML = """
databases:
  - name: main
    client: sqlite3
    connection:
      filename: ./main.sqlite
    useNullAsDefault: true
  - name: reporting
    client: pg
    connection:
      host: db.internal
      database: reporting
    pool:
      min: 0
      max: 7
"""


class TestBackendConfig:
    def test_defaults(self):
        config = BackendConfig(name="main", client="sqlite3", connection={"filename": "a.db"})
        assert config.pool == PoolSpec()
        assert config.use_null_as_default is True

    def test_alias_and_field_name(self):
        assert BackendConfig(name="a", client="pg", useNullAsDefault=False).use_null_as_default is False
        assert BackendConfig(name="a", client="pg", use_null_as_default=False).use_null_as_default is False

    def test_name_stripped(self):
        assert BackendConfig(name="  main ", client="pg").name == "main"

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            BackendConfig(name="   ", client="pg")

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError):
            BackendConfig(name="a", client="pg", debug=True)

    def test_pool_conversion(self):
        pool = PoolSpec(min=0, max=7, timeout=5).to_pool_config()
        assert (pool.min, pool.max, pool.timeout) == (0, 7, 5.0)


class TestDatabasesFile:
    def test_from_yaml(self):
        parsed = DatabasesFile.from_yaml(YAML)
        assert [d.name for d in parsed.databases] == ["main", "reporting"]
        assert parsed.databases[1].pool.max == 7
        assert parsed.databases[0].connection == {"filename": "./main.sqlite"}

    def test_empty_document(self):
        assert DatabasesFile.from_yaml("").databases == []

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            DatabasesFile.from_yaml("databases: [")

    def test_schema_mismatch(self):
        with pytest.raises(ConfigError, match="Invalid database configuration"):
            DatabasesFile.from_yaml("databases:\n  - client: pg\n")

    def test_load_file(self, tmp_path: Path):
        path = tmp_path / "databases.yaml"
        path.write_text(YAML, encoding="utf-8")
        assert len(load_backend_configs(path)) == 2

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Cannot read"):
            load_backend_configs(tmp_path / "nope.yaml")
