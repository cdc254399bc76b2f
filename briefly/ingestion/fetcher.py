"""Content fetcher: retrieves URLs and dispatches to format-specific extractors."""

import asyncio
import hashlib
import time
from typing import Awaitable, Callable, Dict, List, Optional
from urllib.parse import urlsplit

import httpx
from rich.console import Console

from ..errors import FetchError
from ..locks import KeyedLocks
from ..models import ContentType, FetchedContent
from .content_type import classify_content_type
from .pdf import extract_pdf_content
from .video import VideoExtractor, extract_video_id
from .web import extract_web_content

console = Console()

DEFAULT_USER_AGENT = "Briefly/1.0 (article digest; +https://github.com/briefly)"


def normalize_text(text: str) -> str:
    """Normalize text for hashing."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines).lower()


def compute_content_hash(text: str) -> str:
    """Compute hash of normalized text."""
    return hashlib.sha256(normalize_text(text).encode()).hexdigest()


def extract_outlet(url: str) -> str:
    """Extract outlet/domain from URL."""
    domain = urlsplit(url).hostname or "unknown"
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


class HostRateLimiter:
    """Enforce a minimum delay between consecutive requests to the same host."""

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._locks = KeyedLocks()
        self._last_request: Dict[str, float] = {}

    async def wait(self, host: str) -> None:
        """Wait until a request to ``host`` is allowed, then record it."""
        if self.min_interval <= 0:
            return

        async with self._locks.hold(host):
            last = self._last_request.get(host)
            if last is not None:
                delay = self.min_interval - (self._clock() - last)
                if delay > 0:
                    await self._sleep(delay)
            now = self._clock()
            self._forget_before(now - self.min_interval)
            self._last_request[host] = now

    def _forget_before(self, cutoff: float) -> None:
        """Drop hosts whose last request no longer constrains the next one."""
        stale = [host for host, last in self._last_request.items() if last <= cutoff]
        for host in stale:
            del self._last_request[host]


class ContentFetcher:
    """Fetch URLs and extract normalized plain text."""

    def __init__(
        self,
        timeout: float = 30.0,
        max_redirects: int = 3,
        min_host_interval: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        video_extractor: Optional[VideoExtractor] = None,
        rate_limiter: Optional[HostRateLimiter] = None,
    ) -> None:
        """
        Initialize content fetcher.

        Args:
            timeout: Per-request timeout in seconds
            max_redirects: Maximum redirects followed per request
            min_host_interval: Minimum seconds between requests to one host
            user_agent: Client identifier sent with every request
            transport: Custom httpx transport (for testing)
            video_extractor: Transcript extractor for video URLs
            rate_limiter: Shared per-host rate limiter
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.user_agent = user_agent
        self.transport = transport
        self.video = video_extractor or VideoExtractor()
        self.rate_limiter = rate_limiter or HostRateLimiter(min_host_interval)
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/pdf;q=0.9,*/*;q=0.8",
                },
                transport=self.transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ContentFetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        await self.rate_limiter.wait(urlsplit(url).hostname or "")
        try:
            response = await self.client.get(url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TooManyRedirects as e:
            raise FetchError(url, "redirect", f"More than {self.max_redirects} redirects") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error_msg = f"HTTP {status}"
            if status == 404:
                error_msg = "Not found (404)"
            elif status == 403:
                error_msg = "Access forbidden (403)"
            elif status >= 500:
                error_msg = f"Server error ({status})"
            raise FetchError(url, "http", error_msg) from e
        except httpx.TimeoutException as e:
            raise FetchError(url, "network", "Request timed out") from e
        except httpx.HTTPError as e:
            raise FetchError(url, "network", f"Request failed: {e}") from e

    async def fetch(self, url: str) -> FetchedContent:
        """
        Fetch a URL and extract its content.

        Raises:
            FetchError: On network, HTTP, parse or empty-content failures
        """
        if classify_content_type(url) is ContentType.VIDEO:
            return await self._fetch_video(url)

        response = await self._get(url)
        content_type = classify_content_type(
            url,
            response.headers.get("content-type"),
            response.headers.get("content-disposition"),
            response.content[:16],
        )
        if content_type is ContentType.PDF:
            return self._build_pdf(url, response)
        return self._build_web(url, response)

    def _build_web(self, url: str, response: httpx.Response) -> FetchedContent:
        final_url = str(response.url)
        html = response.text
        title, text = extract_web_content(html, final_url)
        if not text:
            raise FetchError(url, "empty", "No text extracted from page")

        return FetchedContent(
            url=url,
            final_url=final_url,
            content_type=ContentType.WEB,
            title=title,
            text=text,
            raw_content=html,
            outlet=extract_outlet(final_url),
            content_hash=compute_content_hash(text),
        )

    def _build_pdf(self, url: str, response: httpx.Response) -> FetchedContent:
        final_url = str(response.url)
        try:
            title, text, page_count = extract_pdf_content(response.content, final_url)
        except ValueError as e:
            raise FetchError(url, "parse", str(e)) from e
        if not text.strip():
            raise FetchError(url, "empty", "No text extracted from PDF")

        return FetchedContent(
            url=url,
            final_url=final_url,
            content_type=ContentType.PDF,
            title=title,
            text=text,
            outlet=extract_outlet(final_url),
            metadata={"page_count": page_count},
            content_hash=compute_content_hash(text),
        )

    async def _fetch_video(self, url: str) -> FetchedContent:
        video_id = extract_video_id(url)
        if video_id is None:
            raise FetchError(url, "unsupported", "Could not extract video id")

        text = await self.video.fetch_transcript(url, video_id)
        await self.rate_limiter.wait(urlsplit(url).hostname or "")
        info = await self.video.fetch_info(self.client, url)

        return FetchedContent(
            url=url,
            final_url=url,
            content_type=ContentType.VIDEO,
            title=info.get("title") or f"YouTube video {video_id}",
            text=text,
            outlet=info.get("author_name") or "youtube.com",
            metadata={"video_id": video_id, "channel": info.get("author_name")},
            content_hash=compute_content_hash(text),
        )


def print_fetch_summary(fetched: int, cached: int, failures: List[FetchError]) -> None:
    """Print summary of content fetch results."""
    console.print(f"\n[bold]Content Fetch Summary:[/bold]")
    console.print(f"  Total URLs: {fetched + cached + len(failures)}")
    console.print(f"  Fetched: [green]{fetched}[/green]")
    console.print(f"  From cache: [cyan]{cached}[/cyan]")
    console.print(f"  Failed: [red]{len(failures)}[/red]")

    if failures:
        console.print(f"\n[bold red]Failed URLs:[/bold red]")
        for failure in failures:
            console.print(f"  - {failure.url} [dim]({failure.kind})[/dim] {failure.message}")
