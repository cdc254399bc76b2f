"""Cache entry models."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import Field

from .base import FrozenModel

CONTENT = "content"
SUMMARY = "summary"


class CacheEntry(FrozenModel):
    """A stored cache record."""

    key: str = Field(..., description="Composite key of kind and subject")
    kind: str = Field(..., description="content or summary")
    subject_url: str = Field(..., description="URL the entry belongs to")
    content_hash: Optional[str] = Field(None, description="Content hash, for summaries")
    payload: Dict[str, Any] = Field(..., description="Serialized record")
    created_at: datetime = Field(..., description="When the entry was written")
    ttl_class: str = Field(..., description="TTL policy name")

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.created_at < ttl


class CacheStats(FrozenModel):
    """Cache statistics."""

    content_entries: int = Field(0, description="Stored content entries")
    summary_entries: int = Field(0, description="Stored summary entries")
    hits: int = Field(0, description="Cache hits this process")
    misses: int = Field(0, description="Cache misses this process")
    evictions: int = Field(0, description="Expired or invalidated entries removed")
    errors: int = Field(0, description="Store errors treated as misses")
