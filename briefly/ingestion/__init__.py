"""URL extraction and content fetching."""

from .content_type import classify_content_type
from .fetcher import ContentFetcher, HostRateLimiter, compute_content_hash, print_fetch_summary
from .urls import extract_urls, is_valid_url, normalize_url
from .video import VideoExtractor, extract_video_id

__all__ = [
    "ContentFetcher",
    "HostRateLimiter",
    "VideoExtractor",
    "classify_content_type",
    "compute_content_hash",
    "extract_urls",
    "extract_video_id",
    "is_valid_url",
    "normalize_url",
    "print_fetch_summary",
]
