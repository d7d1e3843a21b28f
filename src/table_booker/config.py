"""Configuration objects for the table booking client."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    api_base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the restaurant service.",
    )
    timeout_seconds: float = Field(default=15.0, gt=0)
    debounce_seconds: float = Field(
        default=0.3,
        ge=0,
        description="Quiet period before a typed search query takes effect.",
    )
    timezone: str = Field(default="Europe/London")
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="TABLE_BOOKER_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalise the base URL so endpoint paths join cleanly."""
        value = value.strip()
        if not value:
            raise ValueError("api_base_url must not be empty")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.strip().upper()
