"""Summaries, embeddings and narratives from the text-generation collaborator."""

from .embeddings import EmbeddingGenerator, embedding_text
from .llm_provider import LLMProvider, MockLLMProvider, OpenAIProvider, translate_openai_error
from .models import NarrativeResult
from .narrative import NarrativeSynthesizer, fallback_title
from .retry import call_with_retry
from .summarizer import Summarizer
from .themes import ThemeClassifier

__all__ = [
    "LLMProvider",
    "OpenAIProvider",
    "MockLLMProvider",
    "translate_openai_error",
    "Summarizer",
    "EmbeddingGenerator",
    "embedding_text",
    "NarrativeSynthesizer",
    "NarrativeResult",
    "fallback_title",
    "ThemeClassifier",
    "call_with_retry",
]
