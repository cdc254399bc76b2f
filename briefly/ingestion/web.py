"""HTML text extraction."""

import re
from typing import List, Optional, Tuple

import trafilatura
from bs4 import BeautifulSoup

REMOVE_SELECTORS = (
    "script, style, nav, footer, header, aside, form, iframe, noscript, "
    ".sidebar, #sidebar, .ad, .advertisement, .popup, .modal, .cookie-banner"
)

MAIN_CONTENT_SELECTORS = [
    "article",
    "main",
    ".main-content",
    ".entry-content",
    ".post-content",
    ".post-body",
    ".article-body",
    "[role='main']",
    ".content",
    "#content",
]

_SPACES_RE = re.compile(r"[ \t\r\f\v\u00a0]+")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace, keeping one line per block of text."""
    lines = []
    for line in text.splitlines():
        line = _SPACES_RE.sub(" ", line).strip()
        if line:
            lines.append(line)
    return "\n".join(lines)


def _outermost(nodes: List) -> List:
    ids = {id(node) for node in nodes}
    return [node for node in nodes if not any(id(parent) in ids for parent in node.parents)]


def _main_content_text(soup: BeautifulSoup) -> str:
    for selector in MAIN_CONTENT_SELECTORS:
        nodes = soup.select(selector)
        if not nodes:
            continue
        text = "\n".join(node.get_text(separator="\n") for node in _outermost(nodes))
        text = collapse_whitespace(text)
        if text:
            return text

    body = soup.body or soup
    return collapse_whitespace(body.get_text(separator="\n"))


def _title_from_text(text: str) -> str:
    words = text.split()
    if len(words) > 10:
        return " ".join(words[:10]) + "..."
    return " ".join(words)


def _markup_title(html: str, soup: BeautifulSoup) -> str:
    """Title from metadata, <title>, og:title or the first <h1>, in that order."""
    metadata = trafilatura.metadata.extract_metadata(html)
    if metadata and metadata.title:
        return metadata.title.strip()

    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(strip=True)

    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content", "").strip():
        return og_title["content"].strip()

    h1 = soup.find("h1")
    if h1 and h1.get_text(strip=True):
        return h1.get_text(" ", strip=True)

    return ""


def extract_web_content(html: str, url: Optional[str] = None) -> Tuple[str, str]:
    """
    Extract the title and main text of an HTML page.

    Returns:
        Tuple of (title, text). The text is empty if nothing usable was found.
    """
    soup = BeautifulSoup(html, "html.parser")
    # <h1> often sits inside <header>, so read the title before stripping
    title = _markup_title(html, soup)

    for node in soup.select(REMOVE_SELECTORS):
        node.decompose()

    text = _main_content_text(soup)

    if not text:
        extracted = trafilatura.extract(
            html,
            include_comments=False,
            include_tables=False,
            deduplicate=True,
            url=url,
        )
        text = collapse_whitespace(extracted or "")

    return title or _title_from_text(text), text
