"""Configuration management using pydantic-settings."""

from .settings import (
    CacheSettings,
    IntentcallSettings,
    LoggingSettings,
    RateLimitSettings,
    ResilienceSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "CacheSettings",
    "IntentcallSettings",
    "LoggingSettings",
    "RateLimitSettings",
    "ResilienceSettings",
    "clear_settings_cache",
    "get_settings",
]
