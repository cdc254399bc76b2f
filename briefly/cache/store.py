"""Cache store interface and in-memory implementation."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from ..models import CacheEntry


class CacheStore(ABC):
    """Abstract key-value store for cache entries.

    Implementations raise ``CacheError`` on I/O failures.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        """Get an entry by key, or None."""
        pass

    @abstractmethod
    async def put(self, entry: CacheEntry) -> None:
        """Insert or replace an entry."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete an entry if present."""
        pass

    @abstractmethod
    async def delete_expired(self, kind: str, cutoff: datetime) -> int:
        """Delete entries of ``kind`` created before ``cutoff``. Returns the number removed."""
        pass

    @abstractmethod
    async def count(self, kind: str) -> int:
        """Count stored entries of ``kind``."""
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Delete every entry. Returns the number removed."""
        pass


class MemoryCacheStore(CacheStore):
    """Process-local dict-backed store."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def put(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def delete_expired(self, kind: str, cutoff: datetime) -> int:
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.kind == kind and entry.created_at <= cutoff
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def count(self, kind: str) -> int:
        return sum(1 for entry in self._entries.values() if entry.kind == kind)

    async def clear(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        return removed
