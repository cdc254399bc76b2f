"""Digest models."""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import Field

from .article import Article
from .base import FrozenModel, utcnow
from .cluster import TopicCluster
from .summary import Summary


class DigestSection(FrozenModel):
    """One cluster with its articles and summaries."""

    cluster: TopicCluster = Field(..., description="The topic cluster")
    articles: Tuple[Article, ...] = Field(..., description="Member articles, cluster order")
    summaries: Tuple[Summary, ...] = Field(..., description="Member summaries, same order")
    narrative: Optional[str] = Field(None, description="Cluster narrative")


class DigestMetadata(FrozenModel):
    """Computed digest metadata."""

    title: str = Field(..., description="Digest title")
    generated_at: datetime = Field(default_factory=utcnow, description="Generation timestamp")
    article_count: int = Field(..., description="Total articles in the digest")
    word_count: int = Field(..., description="Total words across summaries and narratives")
    cluster_count: int = Field(0, description="Number of sections")
    fallback_summaries: int = Field(0, description="Summaries built from excerpts")
    narrative_fallback: bool = Field(False, description="Whether the narrative is the fallback")


class Digest(FrozenModel):
    """Assembled digest, ready for rendering."""

    sections: Tuple[DigestSection, ...] = Field(..., description="Ordered digest sections")
    executive_summary: str = Field(..., description="Executive narrative")
    top_article_ids: Tuple[str, ...] = Field(default_factory=tuple, description="Highlighted articles")
    metadata: DigestMetadata = Field(..., description="Digest metadata")

    @property
    def articles(self) -> Tuple[Article, ...]:
        return tuple(a for section in self.sections for a in section.articles)
