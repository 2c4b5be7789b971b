"""Centralized bus settings using pydantic-settings."""
from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from consolebus.errors import ConfigError
from consolebus.logging import DEFAULT_LOG_FILE

_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class BusSettings(BaseSettings):
    """Event bus configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONSOLEBUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path | None = Field(default=None, description="Log directory (console only if unset)")
    log_file_name: str = Field(default=DEFAULT_LOG_FILE, description="Rotating log file name")

    # Bus behaviour
    thread_safe: bool = Field(default=True, description="Guard registry and buffer with a lock")
    trace_events: bool = Field(default=False, description="Log buffering, replay and dispatch as structured records")

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LEVELS:
            raise ValueError(f"Unknown log level '{value}'. Expected one of: {', '.join(sorted(_LEVELS))}")
        return level


# Global settings instance
_settings: BusSettings | None = None


def get_settings() -> BusSettings:
    """Get the global settings instance.

    Raises:
        ConfigError: If the environment holds invalid values
    """
    global _settings
    if _settings is None:
        try:
            _settings = BusSettings()
        except ValidationError as exc:
            raise ConfigError(f"Invalid consolebus settings: {exc}") from exc
    return _settings


def reload_settings() -> BusSettings:
    """Reload settings (useful for testing)."""
    global _settings
    _settings = None
    return get_settings()
