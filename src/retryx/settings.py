"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated defaults for retry policies and logging.
Supports .env files and nested configuration.

Example:
    >>> from retryx.settings import get_settings
    >>> settings = get_settings()
    >>> settings.retry.max_attempts
    3
    >>> settings.logging.level
    'INFO'
    
    # Or with environment variables:
    # RETRYX_RETRY_MAX_ATTEMPTS=5
    # RETRYX_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, NonNegativeFloat, PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrySettings(BaseSettings):
    """Default retry policy values."""
    
    model_config = SettingsConfigDict(
        env_prefix="RETRYX_RETRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    max_attempts: PositiveInt = Field(default=3, description="Total attempts including the first")
    delay: NonNegativeFloat = Field(default=0.0, description="Wait before the first retry in seconds")
    backoff: bool = Field(default=False, description="Double the wait after each failed attempt")
    timeout: PositiveFloat | None = Field(default=None, description="Per-attempt timeout in seconds")
    cancel_on_timeout: bool = True


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="RETRYX_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"
    
    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetryxSettings(BaseSettings):
    """Root settings for retryx.
    
    Loads configuration from environment variables with RETRYX_ prefix.
    
    Example environment variables:
        RETRYX_RETRY_MAX_ATTEMPTS=5
        RETRYX_RETRY_DELAY=0.5
        RETRYX_RETRY_BACKOFF=true
        RETRYX_LOG_LEVEL=DEBUG
    """
    
    model_config = SettingsConfigDict(
        env_prefix="RETRYX_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )
    
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> RetryxSettings:
    """Get the global settings instance (cached)."""
    return RetryxSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).
    
    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
