"""Video transcript extraction."""

import asyncio
import re
from typing import Any, Callable, Dict, List, Optional

import httpx
from rich.console import Console
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from ..errors import FetchError

console = Console()

VIDEO_ID_RE = re.compile(
    r"(?:youtube(?:-nocookie)?\.com/(?:watch\?(?:.*&)?v=|embed/|shorts/|live/|v/)|youtu\.be/)"
    r"([a-zA-Z0-9_-]{11})"
)

OEMBED_URL = "https://www.youtube.com/oembed"


def extract_video_id(url: str) -> Optional[str]:
    """Extract the 11-character video id from a YouTube URL."""
    match = VIDEO_ID_RE.search(url)
    return match.group(1) if match else None


def _fetch_transcript_snippets(video_id: str) -> List[str]:
    transcript = YouTubeTranscriptApi().fetch(video_id)
    return [snippet.text for snippet in transcript]


class VideoExtractor:
    """Fetch video transcripts and basic video information."""

    def __init__(
        self,
        transcript_fetcher: Optional[Callable[[str], List[str]]] = None,
    ) -> None:
        """
        Initialize video extractor.

        Args:
            transcript_fetcher: Blocking callable returning transcript
                snippets for a video id
        """
        self.transcript_fetcher = transcript_fetcher or _fetch_transcript_snippets

    async def fetch_transcript(self, url: str, video_id: str) -> str:
        """Fetch and clean the transcript of a video."""
        try:
            snippets = await asyncio.to_thread(self.transcript_fetcher, video_id)
        except CouldNotRetrieveTranscript as e:
            raise FetchError(url, "transcript", f"Transcript unavailable: {type(e).__name__}") from e
        except OSError as e:
            raise FetchError(url, "network", f"Transcript request failed: {e}") from e

        text = " ".join(" ".join(snippets).split())
        if not text:
            raise FetchError(url, "empty", "Transcript is empty")
        return text

    async def fetch_info(self, client: httpx.AsyncClient, url: str) -> Dict[str, Any]:
        """Fetch title and channel from the oEmbed endpoint. Failures return an empty dict."""
        try:
            response = await client.get(OEMBED_URL, params={"url": url, "format": "json"})
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            console.print(f"[dim]No video info for {url}: {e}[/dim]")
            return {}
