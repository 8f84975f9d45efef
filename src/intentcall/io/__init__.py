"""IO - response cache and instance memory."""

from .cache import CacheEntry, ResponseCache
from .memory import InMemoryStore, MemoryStore

__all__ = ["CacheEntry", "ResponseCache", "InMemoryStore", "MemoryStore"]
