"""Configuration via environment variables and an optional config.json."""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# Unprefixed variables read by earlier deployments of the sink
LEGACY_ENV_NAMES = {
    "PORT": "port",
    "LOG_DIR": "log_dir",
    "LOG_LIFETIME_HOURS": "log_file_lifetime_hours",
    "MAX_LOG_SIZE_MB": "max_log_size_mb",
    "TIMEZONE": "timezone",
}


class LegacyEnvSettingsSource(PydanticBaseSettingsSource):
    """Reads LEGACY_ENV_NAMES; lowest priority, so AUDIT_* always wins."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        for env_name, target in LEGACY_ENV_NAMES.items():
            if target == field_name and env_name in os.environ:
                return os.environ[env_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for field_name, field in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field, field_name)
            if value is not None:
                values[key] = value
        return values


class Settings(BaseSettings):
    """Audit sink configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="AUDIT_", json_file="config.json")

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    # Authentication (empty = no auth, for local dev)
    api_key: str = ""

    # Storage
    log_dir: Path = Path("./logs")
    max_log_size_mb: int = 100
    # Exact byte cap; takes precedence over max_log_size_mb when positive
    max_log_size_bytes: int = 0
    timezone: str = "Europe/Madrid"

    # Retention
    log_file_lifetime_hours: int = 72
    cleanup_interval_seconds: int = 3600

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # config.json, when present, wins over the environment
        return (
            init_settings,
            JsonConfigSettingsSource(settings_cls),
            env_settings,
            LegacyEnvSettingsSource(settings_cls),
        )

    def ensure_dirs(self) -> None:
        """Create the log directory if it doesn't exist."""
        self.log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def max_log_size(self) -> int:
        """Size cap in bytes (0 disables size rotation)."""
        if self.max_log_size_bytes > 0:
            return self.max_log_size_bytes
        return self.max_log_size_mb * 1024 * 1024

    @property
    def log_file_lifetime(self) -> timedelta:
        return timedelta(hours=self.log_file_lifetime_hours)


# Singleton
settings = Settings()
