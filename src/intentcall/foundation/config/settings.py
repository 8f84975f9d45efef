"""Environment-based configuration using pydantic-settings.

Supplies the defaults the builder falls back on when a policy or cache is
not configured explicitly. Supports .env files and nested configuration.

Example:
    >>> from intentcall.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.cache.ttl_ms
    300000
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # INTENTCALL_RESILIENCE_MAX_RETRIES=2
    # INTENTCALL_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt, PositiveInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ResilienceSettings(BaseSettings):
    """Default resilience policy values."""

    model_config = SettingsConfigDict(
        env_prefix="INTENTCALL_RESILIENCE_",
        extra="ignore",
    )

    max_retries: NonNegativeInt = 0
    retry_delay_ms: NonNegativeFloat = Field(default=1000.0, description="Delay before the first retry")
    backoff_multiplier: Annotated[float, Field(ge=1.0)] = 2.0
    timeout_ms: NonNegativeFloat = Field(default=0.0, description="Per-attempt timeout, 0 disables")
    max_concurrent_requests: NonNegativeInt = Field(default=0, description="0 means unbounded")


class CacheSettings(BaseSettings):
    """Response cache configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INTENTCALL_CACHE_",
        extra="ignore",
    )

    enabled: bool = False
    ttl_ms: PositiveInt = Field(default=300_000, description="Entry lifetime in milliseconds")
    max_entries: PositiveInt = Field(default=100, description="Max cached responses")


class RateLimitSettings(BaseSettings):
    """Request rate limiting defaults."""

    model_config = SettingsConfigDict(
        env_prefix="INTENTCALL_RATELIMIT_",
        extra="ignore",
    )

    max_requests_per_minute: NonNegativeInt = Field(default=0, description="0 means unbounded")
    window_ms: PositiveInt = Field(default=60_000, description="Sliding window length")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="INTENTCALL_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "text"
    include_timestamps: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class IntentcallSettings(BaseSettings):
    """Root settings for intentcall.

    Loads configuration from environment variables with the INTENTCALL_
    prefix. Nested sections also read their own prefixed variables.

    Example environment variables:
        INTENTCALL_DEBUG=true
        INTENTCALL_CACHE_ENABLED=true
        INTENTCALL_RESILIENCE_TIMEOUT_MS=15000
        INTENTCALL_RATELIMIT_MAX_REQUESTS_PER_MINUTE=60
    """

    model_config = SettingsConfigDict(
        env_prefix="INTENTCALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    resilience: ResilienceSettings = Field(default_factory=ResilienceSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def effective_log_level(self) -> str:
        """DEBUG when debug mode is on, otherwise the configured level."""
        return "DEBUG" if self.debug else self.logging.level


@lru_cache(maxsize=1)
def get_settings() -> IntentcallSettings:
    """Get the global settings instance (cached)."""
    return IntentcallSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    The next get_settings() call reloads configuration from the environment.
    """
    get_settings.cache_clear()
