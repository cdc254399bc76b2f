"""Content and summary caching."""

from .manager import DEFAULT_CONTENT_TTL, DEFAULT_SUMMARY_TTL, CacheManager
from .store import CacheStore, MemoryCacheStore

__all__ = [
    "CacheManager",
    "CacheStore",
    "MemoryCacheStore",
    "DEFAULT_CONTENT_TTL",
    "DEFAULT_SUMMARY_TTL",
]
