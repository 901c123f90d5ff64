"""Client configuration using pydantic-settings."""
import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Notes client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Remote note store
    api_url: str = Field(
        default="http://localhost:8000/api",
        validation_alias="NOTES_API_URL",
    )
    api_token: str | None = Field(default=None, validation_alias="NOTES_API_TOKEN")
    api_timeout: float = Field(default=30.0, gt=0, validation_alias="NOTES_API_TIMEOUT")

    # Field length limits - mirrors the server-side limit on note titles
    max_title_length: int = Field(
        default=100, ge=1, validation_alias="NOTES_MAX_TITLE_LENGTH",
    )

    log_level: str = Field(default="ERROR", validation_alias="NOTES_LOG_LEVEL")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be appended with a leading slash."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v: str) -> str:
        """Validate the log level is one the logging module knows."""
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: '{v}'")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
