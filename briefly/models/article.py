"""Article and fetched-content models."""

import hashlib
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import Field

from .base import FrozenModel, utcnow


class ContentType(str, Enum):
    """How a URL's content is retrieved and extracted."""

    WEB = "web"
    PDF = "pdf"
    VIDEO = "video"


def article_id_for(url: str) -> str:
    """Stable article id derived from the normalized URL."""
    return hashlib.sha256(url.encode()).hexdigest()[:16]


class FetchedContent(FrozenModel):
    """Normalized result of fetching one URL. This is the cached content payload."""

    url: str = Field(..., description="Normalized URL that was requested")
    final_url: str = Field(..., description="URL after redirects")
    content_type: ContentType = Field(..., description="Extraction strategy used")
    title: str = Field(..., description="Extracted title")
    text: str = Field(..., description="Cleaned plain text")
    raw_content: Optional[str] = Field(None, description="Raw HTML, kept for re-extraction")
    outlet: Optional[str] = Field(None, description="Publishing outlet/domain or channel")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Extractor metadata")
    fetched_at: datetime = Field(default_factory=utcnow, description="When the content was fetched")
    content_hash: str = Field(..., description="Hash of normalized text")

    def to_article(self, position: int) -> "Article":
        """Create the article record for this content."""
        return Article(
            id=article_id_for(self.url),
            url=self.url,
            content_type=self.content_type,
            title=self.title,
            text=self.text,
            raw_content=self.raw_content,
            outlet=self.outlet,
            fetched_at=self.fetched_at,
            content_hash=self.content_hash,
            position=position,
        )


class Article(FrozenModel):
    """Article model, enriched with copies as it moves through the pipeline."""

    id: str = Field(..., description="Stable article id")
    url: str = Field(..., description="Source URL")
    content_type: ContentType = Field(..., description="web, pdf or video")
    title: str = Field(..., description="Extracted title")
    text: str = Field(..., min_length=1, description="Cleaned text")
    raw_content: Optional[str] = Field(None, description="Raw content for re-extraction")
    outlet: Optional[str] = Field(None, description="Publishing outlet/domain")
    fetched_at: datetime = Field(default_factory=utcnow, description="Fetch timestamp")
    content_hash: str = Field(..., description="Hash of normalized text")
    position: int = Field(0, description="Position in the input URL list")
    topic_cluster: Optional[str] = Field(None, description="Assigned cluster label")
    topic_confidence: Optional[float] = Field(None, description="Similarity to cluster centroid")
    embedding: Optional[Tuple[float, ...]] = Field(None, description="Embedding vector")
    theme: Optional[str] = Field(None, description="Classified theme name")
    theme_relevance: Optional[float] = Field(None, description="Theme relevance score")
