# Settings — environment-driven configuration for the villabook client.
# Created: 2026-10-19

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:5000/api"


class Settings(BaseSettings):
    """Client settings, read from ``VILLABOOK_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="VILLABOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = DEFAULT_API_URL
    request_timeout: float = Field(default=30.0, gt=0)
    refresh_path: str = "/auth/refresh-token"
    login_route: str = "login"
    default_language: str = "en"
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".villabook")
    log_level: str = "INFO"

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    global _settings
    _settings = None


def get_config_dir() -> Path:
    """Get/create the config directory."""
    d = get_settings().config_dir
    d.mkdir(parents=True, exist_ok=True)
    return d
