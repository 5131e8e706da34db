"""Application configuration using Pydantic Settings."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def _default_data_dir() -> Path:
    # Container environment mounts /config, otherwise use backend/data
    if Path("/config").exists():
        return Path("/config")
    return (Path(__file__).parent.parent.parent / "data").resolve()


def json_config_settings_source(
    settings: BaseSettings | None = None,
) -> dict[str, Any]:  # noqa: ANN001
    """Load settings from settings.json file.

    This source has lowest priority - env vars will override JSON values.

    Supports a nested ``{"host": {...}, "backend": {...}}`` layout as well as
    flat keys matching the field names.

    Returns:
        Dictionary with setting keys (lowercase) and values from the JSON file
    """
    data_dir_env = os.environ.get("INDEXARR_DATA_DIR", "")
    if data_dir_env and Path(data_dir_env).exists():
        data_dir = Path(data_dir_env)
    else:
        data_dir = _default_data_dir()

    settings_file = data_dir / "config" / "settings.json"
    if not settings_file.exists():
        return {}

    try:
        with settings_file.open("r") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return {}
    if not isinstance(data, dict):
        return {}

    flattened: dict[str, Any] = {}
    for section in ("host", "backend"):
        nested = data.get(section)
        if isinstance(nested, dict):
            for key, value in nested.items():
                flattened[f"{section}_{key}"] = value

    for key, value in data.items():
        if key in ("host", "backend") and isinstance(value, dict):
            continue
        flattened[key] = value

    return {k.lower(): v for k, v in flattened.items()}


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from:
    1. JSON file (settings.json in config directory) - lowest priority
    2. .env file
    3. Environment variables
    4. Values passed to Settings() - highest priority

    All settings are prefixed with INDEXARR_ in the environment
    (e.g., INDEXARR_BACKEND_URL=http://jackett:9117).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INDEXARR_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources.

        Sources earlier in the tuple take priority, so init kwargs come first
        and the JSON file last.
        """
        return (  # type: ignore[return-value]
            init_settings,
            env_settings,
            dotenv_settings,
            json_config_settings_source,
        )

    # Application
    env: Literal["development", "production", "testing"] = Field(
        default="development",
        description="Application environment (development, production, testing)",
    )

    # Host settings
    host_bind_address: str = Field(
        default="127.0.0.1",
        description="Host address to bind the server to",
    )
    host_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port number to bind the server to",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_to_file: bool = Field(
        default=False,
        description="Write JSON log files to logs_dir instead of stdout",
    )

    # Aggregator backend
    backend_url: str = Field(
        default="http://127.0.0.1:9117",
        description="Base URL of the aggregator backend API",
    )
    backend_api_key: str | None = Field(
        default=None,
        description="API key sent to the backend as X-Api-Key",
    )

    # Search
    source_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-source timeout for one search call",
    )
    max_concurrent_sources: int = Field(
        default=8,
        ge=0,
        description="Maximum source calls in flight per search (0 = unbounded)",
    )
    page_size: int = Field(
        default=25,
        ge=1,
        description="Results per page",
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Base directory for application data (config, logs)",
    )

    @property
    def config_dir(self) -> Path:
        """Directory for configuration files (settings.json, etc.)."""
        return self.data_dir / "config"

    @property
    def logs_dir(self) -> Path:
        """Directory for log files (if file logging is enabled)."""
        return self.data_dir / "logs"

    @property
    def is_debug(self) -> bool:
        """Check if running in debug/development mode."""
        return self.env == "development"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_testing(self) -> bool:
        return self.env == "testing"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings instance.

    Creates and caches the settings instance on first call. The cache is
    cleared by reload_settings().
    """
    return Settings()


def reload_settings() -> Settings:
    """Reload settings from all sources (JSON, .env, env vars).

    Returns:
        New Settings instance
    """
    get_settings.cache_clear()
    return get_settings()
