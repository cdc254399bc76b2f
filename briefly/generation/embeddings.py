"""Embedding generation."""

import asyncio
from typing import List, Optional, Sequence, Tuple

from rich.console import Console

from ..errors import (
    CollaboratorError,
    CollaboratorUnavailableError,
    EmbeddingDimensionError,
    PermanentCollaboratorError,
)
from ..models import Article, Summary
from .llm_provider import LLMProvider
from .retry import Sleep, call_with_retry

console = Console()

Vector = Tuple[float, ...]


def embedding_text(article: Article, summary: Summary) -> str:
    """Text embedded for clustering: the title and the summary."""
    return f"{article.title}\n\n{summary.text}"


class EmbeddingGenerator:
    """Obtain fixed-dimension vectors from the collaborator, in batches."""

    def __init__(
        self,
        provider: LLMProvider,
        dimensions: int = 768,
        batch_size: int = 16,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep

    def _check(self, vector: Sequence[float]) -> Vector:
        if len(vector) != self.dimensions:
            raise EmbeddingDimensionError(self.dimensions, len(vector))
        return tuple(float(v) for v in vector)

    async def _call(self, batch: List[str]) -> List[List[float]]:
        if self.provider.supports_batch_embeddings:
            return await self.provider.generate_embeddings(batch)
        return [await self.provider.generate_embedding(text) for text in batch]

    async def embed_many(self, texts: Sequence[str]) -> List[Vector]:
        """
        Embed texts in batches, preserving order.

        Raises:
            CollaboratorError: If any batch fails after retries
            EmbeddingDimensionError: If a vector has the wrong dimension
        """
        vectors = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start:start + self.batch_size])
            result = await call_with_retry(
                lambda: self._call(batch),
                max_retries=self.max_retries,
                base_delay=self.retry_delay,
                sleep=self.sleep,
                description="Embedding batch",
            )
            if len(result) != len(batch):
                raise PermanentCollaboratorError(f"Expected {len(batch)} embeddings, got {len(result)}")
            vectors.extend(self._check(vector) for vector in result)
        return vectors

    async def embed(self, text: str) -> Vector:
        """Embed a single text."""
        return (await self.embed_many([text]))[0]

    async def embed_all(self, texts: Sequence[str]) -> List[Optional[Vector]]:
        """
        Embed texts batch by batch, leaving None for batches that fail.

        An unreachable collaborator and dimension mismatches still raise.
        """
        vectors: List[Optional[Vector]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start:start + self.batch_size])
            try:
                vectors.extend(await self.embed_many(batch))
            except CollaboratorUnavailableError:
                raise
            except CollaboratorError as e:
                console.print(f"[yellow]Embedding failed for {len(batch)} texts: {e}[/yellow]")
                vectors.extend([None] * len(batch))
        return vectors
