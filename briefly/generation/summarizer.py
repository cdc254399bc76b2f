"""Article summarization with retry and excerpt fallback."""

import asyncio
import hashlib

from rich.console import Console

from ..errors import CollaboratorError, CollaboratorUnavailableError, SummarizeError
from ..models import FALLBACK_MODEL, Article, Summary
from ..text import excerpt_words, split_sentences, truncate_text
from .llm_provider import LLMProvider
from .prompts import parse_summary_response
from .retry import Sleep, call_with_retry

console = Console()


def summary_id_for(article: Article) -> str:
    """Stable summary id for an article's current content."""
    return hashlib.sha256(f"{article.url}:{article.content_hash}".encode()).hexdigest()[:16]


class Summarizer:
    """Summarize articles through the text-generation collaborator."""

    def __init__(
        self,
        provider: LLMProvider,
        max_words: int = 150,
        key_points: int = 5,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize summarizer.

        Args:
            provider: Text-generation collaborator
            max_words: Target summary length in words
            key_points: Maximum number of key points kept
            max_retries: Retries on transient errors
            retry_delay: Initial backoff delay in seconds
            sleep: Sleep function used for backoff
        """
        self.provider = provider
        self.max_words = max_words
        self.key_points = key_points
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep

    async def summarize(self, article: Article) -> Summary:
        """
        Summarize an article.

        Transient failures are retried; once retries are exhausted, or on
        a permanent failure, a fallback excerpt is returned instead.

        Raises:
            SummarizeError: If the article has no text
            CollaboratorUnavailableError: If the collaborator cannot be reached
        """
        if not article.text.strip():
            raise SummarizeError(f"Article {article.url} has no text to summarize")

        try:
            response = await call_with_retry(
                lambda: self.provider.generate_summary(
                    article.text,
                    article.content_type.value,
                    title=article.title or None,
                    max_words=self.max_words,
                    key_points=self.key_points,
                ),
                max_retries=self.max_retries,
                base_delay=self.retry_delay,
                sleep=self.sleep,
                description=f"Summarizing {article.url}",
            )
        except CollaboratorUnavailableError:
            raise
        except CollaboratorError as e:
            console.print(f"[yellow]Using fallback summary for {article.url}: {e}[/yellow]")
            return self.fallback_summary(article)

        title, text, key_points = parse_summary_response(response)
        if not text:
            console.print(f"[yellow]Empty summary for {article.url}; using fallback[/yellow]")
            return self.fallback_summary(article)

        return Summary(
            id=summary_id_for(article),
            article_ids=(article.id,),
            url=article.url,
            content_hash=article.content_hash,
            text=excerpt_words(text, self.max_words),
            key_points=tuple(key_points[: self.key_points]),
            title=title,
            model=self.provider.model_name,
        )

    def fallback_summary(self, article: Article) -> Summary:
        """Deterministic summary from the first words of the article text."""
        sentences = split_sentences(article.text)
        return Summary(
            id=summary_id_for(article),
            article_ids=(article.id,),
            url=article.url,
            content_hash=article.content_hash,
            text=excerpt_words(article.text, self.max_words),
            key_points=tuple(truncate_text(s, 200) for s in sentences[:3]),
            model=FALLBACK_MODEL,
        )
