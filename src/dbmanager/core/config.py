"""Pydantic models for backend configuration.

A deployment lists its databases either in the environment
(``DBMANAGER_DATABASES`` as JSON) or in a YAML file.  Entries use knex option
names (``client``, ``connection``, ``pool``, ``useNullAsDefault``) so
configuration written for knex-based tools loads unchanged.

Example YAML::

    databases:
      - name: main
        client: sqlite3
        connection:
          filename: ./data/main.sqlite
        useNullAsDefault: true
      - name: reporting
        client: pg
        connection:
          host: db.internal
          user: report
          password: secret
          database: reporting
        pool:
          min: 0
          max: 7

Tags:
    configuration, yaml, pydantic, dbmanager

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from dbmanager.core.adapters.types import PoolConfig
from dbmanager.core.errors import ConfigError


class PoolSpec(BaseModel):
    """Pool section of a backend entry."""

    model_config = ConfigDict(extra="forbid")

    min: int = Field(default=2, description="Connections kept open")
    max: int = Field(default=10, description="Maximum concurrent connections")
    timeout: float = Field(default=30.0, description="Seconds to wait for a free connection")

    def to_pool_config(self) -> PoolConfig:
        return PoolConfig(min=self.min, max=self.max, timeout=self.timeout)


class BackendConfig(BaseModel):
    """One configured logical database."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = Field(..., description="Logical database name used in URLs")
    client: str = Field(..., description="sqlite3, sqlite, pg, postgres, postgresql or mysql")
    connection: dict[str, Any] = Field(
        default_factory=dict,
        description="Driver parameters (filename, or host/port/user/password/database)",
    )
    pool: PoolSpec = Field(default_factory=PoolSpec, description="Connection pool bounds")
    use_null_as_default: bool = Field(
        default=True,
        alias="useNullAsDefault",
        description="Accepted for compatibility; missing values are always NULL",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Database name must not be empty")
        return v.strip()


class DatabasesFile(BaseModel):
    """Root of a YAML configuration file."""

    model_config = ConfigDict(extra="ignore")

    databases: list[BackendConfig] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> DatabasesFile:
        """Parse and validate YAML content.

        Raises:
            ConfigError: If YAML is invalid or doesn't match the schema.
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", cause=e) from e

        if data is None:
            return cls()
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid database configuration: {e}", cause=e) from e

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> DatabasesFile:
        """Load and validate from a YAML file."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}", cause=e) from e
        return cls.from_yaml(content)


def load_backend_configs(path: str | Path) -> list[BackendConfig]:
    """Backend entries of a YAML configuration file."""
    return DatabasesFile.from_yaml_file(path).databases


__all__ = [
    "PoolSpec",
    "BackendConfig",
    "DatabasesFile",
    "load_backend_configs",
]
