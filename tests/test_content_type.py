"""Tests for content-type classification."""

import pytest

from briefly.ingestion import classify_content_type
from briefly.models import ContentType


class TestClassifyContentType:
    """Tests for classify_content_type()."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://m.youtube.com/shorts/dQw4w9WgXcQ",
            "https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ",
        ],
    )
    def test_video_hosts(self, url: str) -> None:
        assert classify_content_type(url) is ContentType.VIDEO

    def test_lookalike_host_is_not_video(self) -> None:
        assert classify_content_type("https://notyoutube.com/watch?v=dQw4w9WgXcQ") is ContentType.WEB

    def test_video_host_beats_pdf_indicators(self) -> None:
        url = "https://www.youtube.com/watch?v=dQw4w9WgXcQ&file=x.pdf"
        assert classify_content_type(url, "application/pdf") is ContentType.VIDEO

    def test_pdf_by_path(self) -> None:
        assert classify_content_type("https://arxiv.org/pdf/2401.00001.PDF") is ContentType.PDF

    def test_pdf_by_header(self) -> None:
        url = "https://example.com/download?id=4"
        assert classify_content_type(url, "application/pdf; charset=binary") is ContentType.PDF

    def test_pdf_by_disposition(self) -> None:
        url = "https://example.com/download?id=4"
        assert classify_content_type(url, "application/octet-stream", 'attachment; filename="paper.pdf"') is ContentType.PDF

    def test_pdf_by_magic_bytes(self) -> None:
        url = "https://example.com/download?id=4"
        assert classify_content_type(url, "application/octet-stream", None, b"%PDF-1.7\n") is ContentType.PDF

    def test_everything_else_is_web(self) -> None:
        assert classify_content_type("https://example.com/post", "text/html") is ContentType.WEB
        assert classify_content_type("https://example.com/post") is ContentType.WEB
