"""Configuration system for Snapshot Console.

Loads configuration from:
1. JSON file specified by SNAPSHOT_CONSOLE_CONFIG env var
2. Environment variable overrides with SNAPSHOT_CONSOLE_ prefix
   - Nested keys use double underscore: SNAPSHOT_CONSOLE_ENGINE__BACKEND
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineBackend(str, Enum):
    """Supported embedded SQL engines."""

    SQLITE = "sqlite"
    DUCKDB = "duckdb"


class SnapshotConfig(BaseSettings):
    """Configuration for resolving and fetching database snapshots."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_CONSOLE_SNAPSHOT__",
        env_nested_delimiter="__",
    )

    base_url: str = Field(
        default="https://static.repo.md", description="Object storage base URL"
    )
    project_id: str = Field(default="", description="Project whose snapshots are served")
    revision: str = Field(default="latest", description="Revision to open, or 'latest'")
    filename: str = Field(default="content.sqlite", description="Snapshot file name")
    fetch_timeout: float = Field(
        default=60.0, ge=1, le=600, description="Snapshot download timeout in seconds"
    )


class EngineConfig(BaseSettings):
    """Configuration for the embedded SQL engine."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_CONSOLE_ENGINE__",
        env_nested_delimiter="__",
    )

    backend: EngineBackend = EngineBackend.SQLITE
    memory_limit: str = Field(
        default="1GB", description="DuckDB memory limit (e.g., '4GB', '512MB')"
    )
    threads: int = Field(default=2, ge=1, description="Number of DuckDB threads")
    max_init_attempts: int = Field(
        default=3, ge=1, description="Engine init failures tolerated before the console disables"
    )


class ExportConfig(BaseSettings):
    """Configuration for result downloads."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_CONSOLE_EXPORT__",
        env_nested_delimiter="__",
    )

    max_size_bytes: int = Field(
        default=100 * 1024 * 1024, ge=1, description="Maximum CSV export size in bytes"
    )


class ServerConfig(BaseSettings):
    """Configuration for the HTTP server."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_CONSOLE_SERVER__",
        env_nested_delimiter="__",
    )

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, ge=1, le=65535, description="Server port")


class OTelConfig(BaseSettings):
    """Configuration for OpenTelemetry."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_CONSOLE_OTEL__",
        env_nested_delimiter="__",
    )

    enabled: bool = Field(default=False, description="Enable OpenTelemetry instrumentation")
    endpoint: str = Field(
        default="http://localhost:4317", description="OTLP exporter endpoint"
    )
    insecure: bool = Field(default=True, description="Use an insecure OTLP channel")
    service_name: str = Field(default="snapshot-console", description="Service name for traces")


class Settings(BaseSettings):
    """Root configuration for Snapshot Console."""

    model_config = SettingsConfigDict(
        env_prefix="SNAPSHOT_CONSOLE_",
        env_nested_delimiter="__",
        env_file=None,
        extra="ignore",
    )

    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    otel: OTelConfig = Field(default_factory=OTelConfig)

    @model_validator(mode="before")
    @classmethod
    def load_from_json_file(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Load configuration from JSON file if SNAPSHOT_CONSOLE_CONFIG is set."""
        import os

        config_path = os.environ.get("SNAPSHOT_CONSOLE_CONFIG")
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ValueError(f"Config file not found: {config_path}")
            with path.open() as f:
                file_config = json.load(f)
            for key, value in file_config.items():
                if key not in data:
                    data[key] = value
                elif isinstance(value, dict) and isinstance(data.get(key), dict):
                    data[key] = {**value, **data[key]}
        return data


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings (cached)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
