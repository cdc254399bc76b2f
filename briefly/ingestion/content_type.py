"""Content-type classification for fetched URLs."""

from typing import Optional
from urllib.parse import urlsplit

from ..models import ContentType

VIDEO_HOSTS = (
    "youtube.com",
    "youtu.be",
    "youtube-nocookie.com",
)

PDF_MAGIC = b"%PDF-"


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def is_video_host(url: str) -> bool:
    """Check whether the URL's host is a known video-hosting domain."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    return any(_host_matches(host, domain) for domain in VIDEO_HOSTS)


def _path_is_pdf(url: str) -> bool:
    try:
        path = urlsplit(url).path
    except ValueError:
        return False
    return path.lower().endswith(".pdf")


def classify_content_type(
    url: str,
    content_type_header: Optional[str] = None,
    content_disposition: Optional[str] = None,
    body_prefix: Optional[bytes] = None,
) -> ContentType:
    """
    Decide how a URL's content should be handled.

    Checked in priority order: video-hosting domain, then PDF indicators
    (path suffix, Content-Type, Content-Disposition filename, or the
    ``%PDF-`` magic bytes when a body prefix is available), then web page.
    Every input maps to exactly one type.
    """
    if is_video_host(url):
        return ContentType.VIDEO

    if _path_is_pdf(url):
        return ContentType.PDF
    if content_type_header and "application/pdf" in content_type_header.lower():
        return ContentType.PDF
    if content_disposition and ".pdf" in content_disposition.lower():
        return ContentType.PDF
    if body_prefix and body_prefix.lstrip()[: len(PDF_MAGIC)] == PDF_MAGIC:
        return ContentType.PDF

    return ContentType.WEB
