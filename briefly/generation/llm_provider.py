"""LLM provider interface and implementations."""

import hashlib
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

import openai
from openai import AsyncOpenAI
from rich.console import Console

from ..errors import (
    CollaboratorError,
    CollaboratorUnavailableError,
    PermanentCollaboratorError,
    TransientCollaboratorError,
)
from ..models import Article
from ..text import split_sentences, tokenize
from .prompts import build_summary_prompt, build_theme_prompt, parse_theme_response

console = Console()

DEFAULT_EMBEDDING_DIMENSIONS = 768


class LLMProvider(ABC):
    """Abstract base class for the text-generation collaborator.

    Every method raises a ``CollaboratorError`` subclass on failure:
    ``TransientCollaboratorError`` for retryable errors,
    ``PermanentCollaboratorError`` for rejected requests and
    ``CollaboratorUnavailableError`` when the service cannot be reached.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Identifier recorded on generated summaries."""
        pass

    @property
    def supports_batch_embeddings(self) -> bool:
        return True

    @abstractmethod
    async def generate_summary(
        self,
        text: str,
        format_hint: str,
        title: Optional[str] = None,
        max_words: int = 150,
        key_points: int = 5,
    ) -> str:
        """
        Summarize content.

        Args:
            text: Cleaned article text
            format_hint: Content type (web, pdf, video)
            title: Known title, if any
            max_words: Target summary length
            key_points: Maximum number of key points

        Returns:
            Raw response with SUMMARY and KEY POINTS sections
        """
        pass

    @abstractmethod
    async def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed several texts in one call, preserving order."""
        pass

    async def generate_embedding(self, text: str) -> List[float]:
        """Embed a single text."""
        embeddings = await self.generate_embeddings([text])
        return embeddings[0]

    @abstractmethod
    async def generate_narrative(self, context: str, max_words: int = 200) -> str:
        """Generate narrative text from a fully built prompt."""
        pass

    @abstractmethod
    async def classify_theme(
        self,
        article: Article,
        themes: Sequence[str],
        summary: Optional[str] = None,
    ) -> Tuple[Optional[str], float]:
        """
        Classify an article into one of ``themes``.

        Returns:
            Tuple of (theme name or None, relevance score in [0, 1])
        """
        pass

    @abstractmethod
    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        pass


def translate_openai_error(error: Exception) -> CollaboratorError:
    """Map an OpenAI client exception onto the collaborator error taxonomy."""
    # APITimeoutError subclasses APIConnectionError, so it is checked first
    if isinstance(error, openai.APITimeoutError):
        return TransientCollaboratorError(f"Request timed out: {error}", error)
    if isinstance(error, openai.APIConnectionError):
        return CollaboratorUnavailableError(f"Cannot reach API: {error}", error)
    if isinstance(error, (openai.RateLimitError, openai.InternalServerError)):
        return TransientCollaboratorError(str(error), error)
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CollaboratorUnavailableError(f"API access denied: {error}", error)
    if isinstance(error, openai.APIStatusError) and error.status_code in (408, 409):
        return TransientCollaboratorError(str(error), error)
    return PermanentCollaboratorError(str(error), error)


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        embedding_model: str = "text-embedding-3-small",
        embedding_dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Chat model name
            embedding_model: Embedding model name
            embedding_dimensions: Requested embedding dimension
            base_url: Custom base URL (for testing)
            timeout: Request timeout in seconds
        """
        # Retries are handled by the pipeline so that backoff is observable
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.model = model
        self.embedding_model = embedding_model
        self.embedding_dimensions = embedding_dimensions
        self.total_tokens = 0
        self.api_calls = 0

        # Token cost estimates (per 1K tokens)
        self.cost_per_1k_tokens = {
            "gpt-4o": {"input": 0.005, "output": 0.015},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "text-embedding-3-small": {"input": 0.00002, "output": 0.0},
        }

    @property
    def model_name(self) -> str:
        return self.model

    async def _complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        self.api_calls += 1
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.OpenAIError as e:
            raise translate_openai_error(e) from e

        if response.usage:
            self.total_tokens += response.usage.total_tokens

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise PermanentCollaboratorError("Empty completion")
        return content.strip()

    async def generate_summary(
        self,
        text: str,
        format_hint: str,
        title: Optional[str] = None,
        max_words: int = 150,
        key_points: int = 5,
    ) -> str:
        """Summarize content using OpenAI."""
        prompt = build_summary_prompt(text, format_hint, title, max_words, key_points)
        return await self._complete(prompt, temperature=0.3, max_tokens=max_words * 2 + 300)

    async def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed texts using OpenAI."""
        self.api_calls += 1
        try:
            response = await self.client.embeddings.create(
                model=self.embedding_model,
                input=list(texts),
                dimensions=self.embedding_dimensions,
            )
        except openai.OpenAIError as e:
            raise translate_openai_error(e) from e

        if response.usage:
            self.total_tokens += response.usage.total_tokens

        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts):
            raise PermanentCollaboratorError(
                f"Expected {len(texts)} embeddings, got {len(data)}"
            )
        return [list(item.embedding) for item in data]

    async def generate_narrative(self, context: str, max_words: int = 200) -> str:
        """Generate narrative using OpenAI."""
        return await self._complete(context, temperature=0.4, max_tokens=max_words * 2 + 200)

    async def classify_theme(
        self,
        article: Article,
        themes: Sequence[str],
        summary: Optional[str] = None,
    ) -> Tuple[Optional[str], float]:
        """Classify article theme using OpenAI."""
        prompt = build_theme_prompt(article.title, summary or article.text[:1000], themes)
        response = await self._complete(prompt, temperature=0.0, max_tokens=50)
        return parse_theme_response(response, themes)

    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        estimated_cost = 0.0
        if self.model in self.cost_per_1k_tokens:
            # Rough estimate (assuming 70% input, 30% output)
            input_tokens = int(self.total_tokens * 0.7)
            output_tokens = int(self.total_tokens * 0.3)
            rates = self.cost_per_1k_tokens[self.model]
            estimated_cost = (
                (input_tokens / 1000) * rates["input"] +
                (output_tokens / 1000) * rates["output"]
            )

        return {
            "total_tokens": self.total_tokens,
            "api_calls": self.api_calls,
            "estimated_cost": estimated_cost,
            "model": self.model,
        }


class MockLLMProvider(LLMProvider):
    """Deterministic offline provider for testing and runs without an API key."""

    def __init__(self, embedding_dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS) -> None:
        """Initialize mock provider."""
        self.embedding_dimensions = embedding_dimensions
        self.calls = []

    @property
    def model_name(self) -> str:
        return "mock"

    async def generate_summary(
        self,
        text: str,
        format_hint: str,
        title: Optional[str] = None,
        max_words: int = 150,
        key_points: int = 5,
    ) -> str:
        """Mock summarization from the leading sentences."""
        self.calls.append(("summarize", format_hint))

        sentences = split_sentences(text)
        summary = " ".join(" ".join(sentences[:3]).split()[:max_words])
        points = sentences[:key_points] or [summary]
        lines = []
        if not title:
            lines.append(f"TITLE: {' '.join(text.split()[:8])}")
        lines.append("SUMMARY:")
        lines.append(summary)
        lines.append("KEY POINTS:")
        lines.extend(f"- {point}" for point in points)
        return "\n".join(lines)

    async def generate_embeddings(self, texts: Sequence[str]) -> List[List[float]]:
        """Hashed bag-of-words embeddings, L2 normalized."""
        self.calls.append(("embed", len(texts)))
        return [self._embed(text) for text in texts]

    def _embed(self, text: str) -> List[float]:
        vector = [0.0] * self.embedding_dimensions
        for token in tokenize(text):
            digest = hashlib.md5(token.encode()).digest()
            index = int.from_bytes(digest[:4], "big") % self.embedding_dimensions
            vector[index] += 1.0 if digest[4] % 2 == 0 else -1.0

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]

    async def generate_narrative(self, context: str, max_words: int = 200) -> str:
        """Mock narrative built from the summaries in the prompt."""
        self.calls.append(("narrative", len(context)))

        summaries = [
            line.strip()[len("Summary:"):].strip()
            for line in context.splitlines()
            if line.strip().startswith("Summary:")
        ]
        if not summaries:
            summaries = [
                line.strip()
                for line in context.splitlines()
                if line.strip() and not line.startswith(("#", "TITLE", "Write", "Connect", "Output", "Topic", "["))
            ]
        body = " ".join(" ".join(summaries).split()[:max_words])
        return f"TITLE: Mock Digest\n{body}"

    async def classify_theme(
        self,
        article: Article,
        themes: Sequence[str],
        summary: Optional[str] = None,
    ) -> Tuple[Optional[str], float]:
        """Pick the theme sharing the most words with the article."""
        self.calls.append(("classify", article.id))

        words = set(tokenize(f"{article.title} {summary or article.text}"))
        best, best_score = None, 0.0
        for theme in themes:
            theme_words = set(tokenize(theme))
            if not theme_words:
                continue
            score = len(theme_words & words) / len(theme_words)
            if score > best_score:
                best, best_score = theme, score
        return best, best_score

    def get_usage_stats(self) -> Dict:
        """Get mock usage statistics."""
        return {
            "total_tokens": len(self.calls) * 100,
            "api_calls": len(self.calls),
            "estimated_cost": 0.0,
            "model": "mock",
        }
