"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./matrisync.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    realtime_enabled: bool = Field(
        default=True,
        description="Whether new sessions open a realtime subscription on sign-in",
    )
    profile_batch_window_ms: int = Field(
        default=100,
        description="Window used to coalesce profile lookups into one batch",
        ge=0,
    )
    conversation_cache_ttl_seconds: float = Field(
        default=30.0,
        description="Seconds a cached conversation is served without refetching",
        ge=0,
    )
    notification_feed_limit: int = Field(
        default=50, description="Maximum entries kept in the notification feed", gt=0
    )
    notification_category_limit: int = Field(
        default=5,
        description="Records fetched per notification category on a full refresh",
        gt=0,
    )
    message_fetch_limit: int = Field(
        default=50, description="Messages loaded per conversation fetch", gt=0
    )
    cache_capacity: int = Field(
        default=500,
        description="Entries kept by the profile and conversation caches",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="Comma separated list of origins allowed by CORS",
    )

    @model_validator(mode="after")
    def _validate_log_level(self) -> "Settings":
        level = self.log_level.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        self.log_level = level
        return self

    @property
    def allowed_origins(self) -> list[str]:
        """Return ``cors_origins`` split into individual origins."""

        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
