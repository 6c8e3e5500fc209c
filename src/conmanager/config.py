"""
Client configuration.

Settings are read from ``CONMANAGER_*`` environment variables through
pydantic-settings. Arguments passed to the client constructor take
precedence over these values.

Example:
    >>> import os
    >>> os.environ["CONMANAGER_BASE_URL"] = "https://cm.example.com/ContentManager"
    >>> get_settings().base_url
    'https://cm.example.com/ContentManager'
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_NAME = "apiToken"

# Chunk size for reading local files and relayed streams
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB

DEFAULT_TIMEOUT = 60.0  # seconds


class ConManagerSettings(BaseSettings):
    """Settings for the Content Manager client."""

    model_config = SettingsConfigDict(env_prefix="CONMANAGER_", extra="ignore")

    base_url: str | None = None
    token_name: str = DEFAULT_TOKEN_NAME
    username: str | None = None
    password: str | None = None

    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=1.0, le=600.0)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1024)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


_settings: ConManagerSettings | None = None


def get_settings() -> ConManagerSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = ConManagerSettings()
    return _settings


def configure_settings(**overrides: Any) -> ConManagerSettings:
    """Replace the process-wide settings with a new instance."""
    global _settings
    _settings = ConManagerSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Forget cached settings; the next ``get_settings()`` reloads them."""
    global _settings
    _settings = None


__all__ = [
    "ConManagerSettings",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TOKEN_NAME",
    "configure_settings",
    "get_settings",
    "reset_settings",
]
