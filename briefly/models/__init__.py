"""Data models for the digest pipeline."""

from .article import Article, ContentType, FetchedContent, article_id_for
from .cache import CONTENT, SUMMARY, CacheEntry, CacheStats
from .cluster import TopicCluster
from .digest import Digest, DigestMetadata, DigestSection
from .summary import FALLBACK_MODEL, Summary

__all__ = [
    "Article",
    "ContentType",
    "FetchedContent",
    "article_id_for",
    "CacheEntry",
    "CacheStats",
    "CONTENT",
    "SUMMARY",
    "TopicCluster",
    "Digest",
    "DigestMetadata",
    "DigestSection",
    "Summary",
    "FALLBACK_MODEL",
]
