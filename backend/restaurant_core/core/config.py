"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. Stores read their defaults from here
but accept explicit overrides at construction time, so tests and callers can
run with non-default behaviour without touching the environment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (or a local .env file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - defaults to relative path, override via env for PostgreSQL
    database_url: str = "sqlite:///./data/restaurant_core.db"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"

    # Transactions: retries apply only to transient store errors
    # (deadlocks, serialization failures, dropped connections)
    transaction_retry_attempts: int = 3
    transaction_retry_backoff: float = 0.05  # seconds, doubled per attempt

    # Assignment removal does not re-elect a primary location unless enabled.
    # Pending product confirmation; see DESIGN.md.
    assignment_auto_promote_on_remove: bool = False

    # Reject assignments whose role is unknown, inactive or system-scoped
    enforce_role_legality: bool = True

    @field_validator("transaction_retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("transaction_retry_attempts must be at least 1")
        return v

    @field_validator("transaction_retry_backoff")
    @classmethod
    def validate_retry_backoff(cls, v: float) -> float:
        if v < 0:
            raise ValueError("transaction_retry_backoff cannot be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
