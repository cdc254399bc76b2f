"""PDF text extraction."""

import re
from io import BytesIO
from typing import List, Tuple

from pypdf import PdfReader
from pypdf.errors import PyPdfError

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")


def _page_paragraphs(page_text: str) -> List[str]:
    """Split page text into paragraphs, joining wrapped lines."""
    paragraphs = []
    for block in _PARAGRAPH_BREAK_RE.split(page_text):
        lines = [line.strip() for line in block.splitlines()]
        # Lines of one or two characters are page numbers and layout noise
        lines = [line for line in lines if len(line) > 2]
        if lines:
            paragraphs.append(" ".join(lines))
    return paragraphs


def _is_all_upper(text: str) -> bool:
    return text.upper() == text and text.lower() != text


def _title_from_text(text: str, url: str) -> str:
    for line in text.splitlines():
        line = line.strip()
        if 10 < len(line) < 200 and "http" not in line:
            if len(line) < 50 or not _is_all_upper(line):
                return line

    words = text.split()
    if len(words) > 3:
        return " ".join(words[:3]) + "..."
    return f"PDF Document ({url})"


def extract_pdf_content(data: bytes, url: str) -> Tuple[str, str, int]:
    """
    Extract text from every page of a PDF.

    Paragraph boundaries are preserved as blank lines.

    Returns:
        Tuple of (title, text, page_count). The text is empty if no page
        yielded usable characters.

    Raises:
        ValueError: If the document cannot be parsed
    """
    try:
        reader = PdfReader(BytesIO(data))
        paragraphs = []
        first_page = ""
        for page in reader.pages:
            page_text = page.extract_text() or ""
            first_page = first_page or page_text
            paragraphs.extend(_page_paragraphs(page_text))
        page_count = len(reader.pages)
        meta_title = reader.metadata.title if reader.metadata else None
    except PyPdfError as e:
        raise ValueError(f"Invalid PDF: {e}") from e

    text = "\n\n".join(paragraphs)
    if meta_title and meta_title.strip():
        title = meta_title.strip()
    else:
        title = _title_from_text(first_page, url)

    return title, text, page_count
