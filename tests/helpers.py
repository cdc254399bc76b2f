"""Test helpers: scripted collaborators, article factories and fake HTTP sites."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import httpx

from briefly.generation import MockLLMProvider
from briefly.ingestion import compute_content_hash
from briefly.models import Article, ContentType, Summary, article_id_for

Route = Union[Tuple[int, Dict[str, str], bytes], Callable[[httpx.Request], httpx.Response]]


class RecordingSleep:
    """Sleep replacement that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class ScriptedProvider(MockLLMProvider):
    """Mock provider whose calls fail according to a script.

    Each ``*_errors`` list is consumed one entry per call; ``None`` means
    that call succeeds. When the list runs out, ``*_always`` (if set) is
    raised on every further call.
    """

    def __init__(
        self,
        summary_errors: Iterable[Optional[Exception]] = (),
        summary_always: Optional[Exception] = None,
        embedding_errors: Iterable[Optional[Exception]] = (),
        embedding_always: Optional[Exception] = None,
        narrative_errors: Iterable[Optional[Exception]] = (),
        narrative_always: Optional[Exception] = None,
        embedding_dimensions: int = 768,
    ) -> None:
        super().__init__(embedding_dimensions)
        self.summary_errors = list(summary_errors)
        self.summary_always = summary_always
        self.embedding_errors = list(embedding_errors)
        self.embedding_always = embedding_always
        self.narrative_errors = list(narrative_errors)
        self.narrative_always = narrative_always
        self.summary_calls = 0
        self.embedding_calls = 0
        self.narrative_prompts: List[str] = []

    @staticmethod
    def _maybe_raise(queue: List[Optional[Exception]], always: Optional[Exception]) -> None:
        if queue:
            error = queue.pop(0)
            if error is not None:
                raise error
            return
        if always is not None:
            raise always

    async def generate_summary(self, text, format_hint, title=None, max_words=150, key_points=5):
        self.summary_calls += 1
        self._maybe_raise(self.summary_errors, self.summary_always)
        return await super().generate_summary(text, format_hint, title, max_words, key_points)

    async def generate_embeddings(self, texts):
        self.embedding_calls += 1
        self._maybe_raise(self.embedding_errors, self.embedding_always)
        return await super().generate_embeddings(texts)

    async def generate_narrative(self, context, max_words=200):
        self.narrative_prompts.append(context)
        self._maybe_raise(self.narrative_errors, self.narrative_always)
        return await super().generate_narrative(context, max_words)


def make_article(
    url: str = "https://example.com/story",
    text: str = "Researchers announced a new result. It matters for the field. More work is planned.",
    title: str = "A Story",
    position: int = 0,
    content_type: ContentType = ContentType.WEB,
    **updates,
) -> Article:
    return Article(
        id=article_id_for(url),
        url=url,
        content_type=content_type,
        title=title,
        text=text,
        content_hash=compute_content_hash(text),
        position=position,
        **updates,
    )


def make_summary(article: Article, text: Optional[str] = None, model: str = "mock") -> Summary:
    return Summary(
        id=f"summary-{article.id}",
        article_ids=(article.id,),
        url=article.url,
        content_hash=article.content_hash,
        text=text or f"Summary of {article.title}.",
        key_points=(f"Point about {article.title}",),
        model=model,
    )


def html_page(title: str, paragraphs: Sequence[str]) -> bytes:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><nav>Home | About | Subscribe</nav>"
        f"<article>{body}</article>"
        f"<footer>Copyright Example Media</footer></body></html>"
    ).encode()


def html_route(title: str, paragraphs: Sequence[str]) -> Route:
    return (200, {"content-type": "text/html; charset=utf-8"}, html_page(title, paragraphs))


def make_transport(routes: Dict[str, Route]) -> httpx.MockTransport:
    """Transport serving ``routes`` keyed by scheme, host and path. Unknown URLs are 404."""

    async def handler(request: httpx.Request) -> httpx.Response:
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        route = routes.get(key)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            response = route(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response
        status, headers, content = route
        return httpx.Response(status, headers=headers, content=content)

    return httpx.MockTransport(handler)


def make_pdf(lines: Sequence[str], title: Optional[str] = None) -> bytes:
    """Build a one-page PDF showing ``lines`` in Helvetica."""
    shown = " ".join(f"({line}) Tj T*" for line in lines)
    content = f"BT /F1 12 Tf 14 TL 72 720 Td {shown} ET"
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        "/Resources << /Font << /F1 5 0 R >> >> >>",
        f"<< /Length {len(content)} >>\nstream\n{content}\nendstream",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    if title:
        objects.append(f"<< /Title ({title}) >>")

    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1")

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    info = f" /Info {len(objects)} 0 R" if title else ""
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R{info} >>\n".encode()
    out += f"startxref\n{xref_offset}\n%%EOF\n".encode()
    return out

