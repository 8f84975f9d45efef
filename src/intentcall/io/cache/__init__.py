"""In-process response cache."""

from .cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_MS, CacheEntry, ResponseCache

__all__ = ["DEFAULT_MAX_ENTRIES", "DEFAULT_TTL_MS", "CacheEntry", "ResponseCache"]
