"""Postgres-backed cache store."""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import psycopg
from psycopg.types.json import Jsonb

from ..cache.store import CacheStore
from ..errors import CacheError
from ..models import CacheEntry
from .connection import get_connection


class PostgresCacheStore(CacheStore):
    """Cache store on the ``cache_entries`` table.

    Blocking database calls run in a worker thread so the event loop keeps
    serving other fetches.
    """

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config

    def _execute(self, sql: str, params: tuple = (), fetch: Optional[str] = None) -> Any:
        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    if fetch == "one":
                        result = cur.fetchone()
                    else:
                        result = cur.rowcount
                conn.commit()
                return result
        except psycopg.Error as e:
            raise CacheError(f"Cache store query failed: {e}") from e

    async def _run(self, sql: str, params: tuple = (), fetch: Optional[str] = None) -> Any:
        return await asyncio.to_thread(self._execute, sql, params, fetch)

    async def get(self, key: str) -> Optional[CacheEntry]:
        row = await self._run(
            """
            SELECT cache_key, kind, subject_url, content_hash, payload, created_at, ttl_class
            FROM cache_entries
            WHERE cache_key = %s
            """,
            (key,),
            fetch="one",
        )
        if row is None:
            return None
        return CacheEntry(
            key=row["cache_key"],
            kind=row["kind"],
            subject_url=row["subject_url"],
            content_hash=row["content_hash"],
            payload=row["payload"],
            created_at=row["created_at"],
            ttl_class=row["ttl_class"],
        )

    async def put(self, entry: CacheEntry) -> None:
        await self._run(
            """
            INSERT INTO cache_entries
                (cache_key, kind, subject_url, content_hash, payload, created_at, ttl_class)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (cache_key) DO UPDATE SET
                kind = EXCLUDED.kind,
                subject_url = EXCLUDED.subject_url,
                content_hash = EXCLUDED.content_hash,
                payload = EXCLUDED.payload,
                created_at = EXCLUDED.created_at,
                ttl_class = EXCLUDED.ttl_class,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                entry.key,
                entry.kind,
                entry.subject_url,
                entry.content_hash,
                Jsonb(entry.payload),
                entry.created_at,
                entry.ttl_class,
            ),
        )

    async def delete(self, key: str) -> None:
        await self._run("DELETE FROM cache_entries WHERE cache_key = %s", (key,))

    async def delete_expired(self, kind: str, cutoff: datetime) -> int:
        return await self._run(
            "DELETE FROM cache_entries WHERE kind = %s AND created_at <= %s",
            (kind, cutoff),
        )

    async def count(self, kind: str) -> int:
        row = await self._run(
            "SELECT COUNT(*) AS total FROM cache_entries WHERE kind = %s",
            (kind,),
            fetch="one",
        )
        return row["total"] if row else 0

    async def clear(self) -> int:
        return await self._run("DELETE FROM cache_entries")
