"""
Service settings.

All values can be overridden via environment variables prefixed with
``DBMANAGER_`` (``DBMANAGER_API_PREFIX``, ``DBMANAGER_DATABASES`` as a
JSON list, ...) or a ``.env`` file.  Databases can additionally be listed
in a YAML file named by ``config_file``; its entries are appended to the
ones given in the environment.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings

from dbmanager.core.config import BackendConfig, load_backend_configs


class DbManagerSettings(BaseSettings):
    """Settings for the dbmanager service.

    Order of precedence (highest → lowest):
        1. Environment variables (``DBMANAGER_API_PREFIX``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(
        default=None, description="JSON logs; None chooses JSON when stdout is not a TTY"
    )

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/dbadmin", description="URL prefix for all endpoints")
    api_title: str = Field(default="dbmanager API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")
    default_rows_per_page: int = Field(
        default=30, ge=1, le=1000, description="Rows per page when the client sends none"
    )

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # ── Databases ────────────────────────────────────────────────────────
    databases: list[BackendConfig] = Field(
        default_factory=list, description="Configured logical databases"
    )
    config_file: str | None = Field(
        default=None, description="YAML file with a 'databases:' list"
    )
    repair_on_startup: bool = Field(
        default=True, description="Add missing id columns before serving requests"
    )

    model_config: dict[str, Any] = {
        "env_prefix": "DBMANAGER_",
        "env_file": ".env",
        "extra": "ignore",
        "env_nested_delimiter": "__",
    }

    def backend_configs(self) -> list[BackendConfig]:
        """Databases from the environment followed by those of ``config_file``."""
        configs = list(self.databases)
        if self.config_file:
            configs.extend(load_backend_configs(self.config_file))
        return configs
