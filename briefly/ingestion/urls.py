"""URL extraction and normalization."""

import re
from typing import List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Unnested "(...)" groups may appear inside a URL, as in Wikipedia links.
# An unbalanced ")" ends it.
MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?://(?:[^()\s]|\([^()\s]*\))+)\)")
RAW_URL_RE = re.compile(r"https?://(?:[^\s()<>\"'\]]|\([^\s()<>\"'\]]*\))+")

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
        "msclkid",
        "ref",
        "source",
    }
)

# Prose punctuation that is never the last character of a real link
TRAILING_PUNCTUATION = ".,;:!?"


def is_valid_url(url: str) -> bool:
    """Check that a URL is absolute http(s) with a host."""
    if not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in ("http", "https") and bool(parts.hostname)


def normalize_url(url: str) -> str:
    """
    Normalize a URL to its canonical form.

    Lowercases scheme and host, drops tracking parameters and the fragment,
    sorts the remaining query parameters and trims a trailing slash from
    non-root paths.

    Raises:
        ValueError: If the URL is not an absolute http(s) URL
    """
    if not is_valid_url(url):
        raise ValueError(f"Not an absolute http(s) URL: {url!r}")

    parts = urlsplit(url.strip())
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in TRACKING_PARAMS
    ]
    query.sort()

    path = parts.path or "/"
    if path != "/":
        path = path.rstrip("/") or "/"

    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), path, urlencode(query), "")
    )


def _clean_match(url: str) -> str:
    return url.rstrip(TRAILING_PUNCTUATION)


def extract_urls(text: Optional[str]) -> List[str]:
    """
    Extract normalized, de-duplicated URLs from free-form text or markdown.

    Markdown links and bare URLs are both recognized. URLs are returned in
    document order; when two URLs normalize to the same form the first
    occurrence wins. Text without URLs yields an empty list.
    """
    if not text:
        return []

    found = []
    covered = []
    for match in MARKDOWN_LINK_RE.finditer(text):
        found.append((match.start(2), match.group(2)))
        covered.append((match.start(), match.end()))

    for match in RAW_URL_RE.finditer(text):
        if any(start <= match.start() < end for start, end in covered):
            continue
        found.append((match.start(), _clean_match(match.group(0))))

    found.sort(key=lambda item: item[0])

    urls = []
    seen = set()
    for _, candidate in found:
        if not is_valid_url(candidate):
            continue
        normalized = normalize_url(candidate)
        if normalized not in seen:
            seen.add(normalized)
            urls.append(normalized)

    return urls
