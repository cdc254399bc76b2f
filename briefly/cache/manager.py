"""Cache manager sitting between the pipeline and its expensive steps."""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from rich.console import Console

from ..errors import CacheError
from ..locks import KeyedLocks
from ..models import CONTENT, SUMMARY, CacheEntry, CacheStats, FetchedContent, Summary
from ..models.base import utcnow
from .store import CacheStore, MemoryCacheStore

console = Console()

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

DEFAULT_CONTENT_TTL = timedelta(hours=24)
DEFAULT_SUMMARY_TTL = timedelta(days=7)


class CacheManager:
    """
    Content-addressable cache for fetched content and generated summaries.

    Content entries expire after ``content_ttl``. Summary entries expire
    after ``summary_ttl`` and are invalidated as soon as the content hash
    they were generated from no longer matches. Store failures are counted
    and treated as misses.

    Concurrent ``get_or_fetch_content`` calls for one URL, and concurrent
    ``get_or_create_summary`` calls for one (URL, content hash), share a
    single underlying call. Writes to the same key are serialized; disjoint
    keys proceed independently.
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        content_ttl: timedelta = DEFAULT_CONTENT_TTL,
        summary_ttl: timedelta = DEFAULT_SUMMARY_TTL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store or MemoryCacheStore()
        self.content_ttl = content_ttl
        self.summary_ttl = summary_ttl
        self._clock = clock
        self._locks = KeyedLocks()
        self._in_flight: Dict[str, asyncio.Future] = {}
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.errors = 0

    @staticmethod
    def content_key(url: str) -> str:
        return f"{CONTENT}:{url}"

    @staticmethod
    def summary_key(url: str) -> str:
        return f"{SUMMARY}:{url}"

    def _ttl_for(self, kind: str) -> timedelta:
        return self.content_ttl if kind == CONTENT else self.summary_ttl

    async def _evict(self, key: str) -> None:
        self.evictions += 1
        try:
            async with self._locks.hold(key):
                await self.store.delete(key)
        except CacheError as e:
            self.errors += 1
            console.print(f"[yellow]Cache eviction failed for {key}: {e}[/yellow]")

    async def _read(
        self,
        key: str,
        kind: str,
        model: Type[M],
        content_hash: Optional[str] = None,
    ) -> Optional[M]:
        try:
            entry = await self.store.get(key)
        except CacheError as e:
            self.errors += 1
            self.misses += 1
            console.print(f"[yellow]Cache read failed for {key}: {e}[/yellow]")
            return None

        if entry is None:
            self.misses += 1
            return None

        stale = not entry.is_fresh(self._clock(), self._ttl_for(kind))
        changed = content_hash is not None and entry.content_hash != content_hash
        if stale or changed:
            self.misses += 1
            await self._evict(key)
            return None

        try:
            value = model.model_validate(entry.payload)
        except ValidationError as e:
            self.misses += 1
            console.print(f"[yellow]Discarding unreadable cache entry {key}: {e.error_count()} errors[/yellow]")
            await self._evict(key)
            return None

        self.hits += 1
        return value

    async def _write(
        self,
        key: str,
        kind: str,
        url: str,
        payload: Dict[str, Any],
        content_hash: Optional[str] = None,
    ) -> None:
        entry = CacheEntry(
            key=key,
            kind=kind,
            subject_url=url,
            content_hash=content_hash,
            payload=payload,
            created_at=self._clock(),
            ttl_class=kind,
        )
        try:
            async with self._locks.hold(key):
                await self.store.put(entry)
        except CacheError as e:
            self.errors += 1
            console.print(f"[yellow]Cache write failed for {key}: {e}[/yellow]")

    async def get_content(self, url: str) -> Optional[FetchedContent]:
        """Get cached content for a URL, or None on miss."""
        return await self._read(self.content_key(url), CONTENT, FetchedContent)

    async def put_content(self, url: str, content: FetchedContent) -> None:
        """Store fetched content for a URL."""
        await self._write(
            self.content_key(url),
            CONTENT,
            url,
            content.model_dump(mode="json"),
            content.content_hash,
        )

    async def get_summary(self, url: str, content_hash: str) -> Optional[Summary]:
        """Get a cached summary, or None on miss or content-hash mismatch."""
        return await self._read(self.summary_key(url), SUMMARY, Summary, content_hash)

    async def put_summary(self, url: str, content_hash: str, summary: Summary) -> None:
        """Store a summary generated from content with ``content_hash``."""
        await self._write(
            self.summary_key(url),
            SUMMARY,
            url,
            summary.model_dump(mode="json"),
            content_hash,
        )

    async def _single_flight(self, key: str, factory: Callable[[], Awaitable[T]]) -> Tuple[T, bool]:
        """
        Run ``factory`` unless a call for ``key`` is already in flight.

        Returns:
            Tuple of (result, shared). ``shared`` is True when the result
            came from another caller's in-flight call.
        """
        while key in self._in_flight:
            future = self._in_flight[key]
            try:
                return await asyncio.shield(future), True
            except asyncio.CancelledError:
                # The leader was cancelled, not us: take over the call
                if not future.cancelled():
                    raise

        future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except BaseException as e:
            future.set_exception(e)
            # Waiters re-raise it; mark retrieved so an unshared failure is not reported
            future.exception()
            raise
        else:
            future.set_result(result)
            return result, False
        finally:
            del self._in_flight[key]

    async def get_or_fetch_content(
        self,
        url: str,
        fetch: Callable[[str], Awaitable[FetchedContent]],
    ) -> Tuple[FetchedContent, bool]:
        """
        Get content from cache, fetching and storing it on a miss.

        Returns:
            Tuple of (content, cached). ``cached`` is False only for the
            caller whose fetch actually ran.
        """

        async def load() -> Tuple[FetchedContent, bool]:
            cached = await self.get_content(url)
            if cached is not None:
                return cached, True
            content = await fetch(url)
            await self.put_content(url, content)
            return content, False

        (content, cached), shared = await self._single_flight(self.content_key(url), load)
        return content, cached or shared

    async def get_or_create_summary(
        self,
        url: str,
        content_hash: str,
        create: Callable[[], Awaitable[Summary]],
    ) -> Tuple[Summary, bool]:
        """
        Get a summary from cache, creating and storing it on a miss.

        Fallback summaries are returned but never stored.
        """

        async def load() -> Tuple[Summary, bool]:
            cached = await self.get_summary(url, content_hash)
            if cached is not None:
                return cached, True
            summary = await create()
            if not summary.is_fallback:
                await self.put_summary(url, content_hash, summary)
            return summary, False

        flight_key = f"{self.summary_key(url)}:{content_hash}"
        (summary, cached), shared = await self._single_flight(flight_key, load)
        return summary, cached or shared

    async def stats(self) -> CacheStats:
        """Get cache statistics."""
        return CacheStats(
            content_entries=await self.store.count(CONTENT),
            summary_entries=await self.store.count(SUMMARY),
            hits=self.hits,
            misses=self.misses,
            evictions=self.evictions,
            errors=self.errors,
        )

    async def clear(self) -> int:
        """Delete every cache entry."""
        return await self.store.clear()

    async def cleanup(self) -> int:
        """Delete expired entries of both kinds."""
        now = self._clock()
        removed = 0
        for kind in (CONTENT, SUMMARY):
            removed += await self.store.delete_expired(kind, now - self._ttl_for(kind))
        self.evictions += removed
        return removed
