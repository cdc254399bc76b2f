"""Tests for embedding generation."""

import asyncio

import pytest

from briefly.errors import (
    CollaboratorUnavailableError,
    EmbeddingDimensionError,
    PermanentCollaboratorError,
    TransientCollaboratorError,
)
from briefly.generation import EmbeddingGenerator, MockLLMProvider, embedding_text
from tests.helpers import ScriptedProvider, make_article, make_summary


class TestEmbeddingGenerator:
    """Tests for EmbeddingGenerator."""

    def test_vectors_have_configured_dimension(self, sleep) -> None:
        generator = EmbeddingGenerator(MockLLMProvider(768), dimensions=768, sleep=sleep)

        vectors = asyncio.run(generator.embed_many(["solar power", "wind farms", "ocean tides"]))

        assert len(vectors) == 3
        assert all(len(vector) == 768 for vector in vectors)

    def test_same_text_same_vector(self, sleep) -> None:
        generator = EmbeddingGenerator(MockLLMProvider(), sleep=sleep)

        first = asyncio.run(generator.embed("quantum computing milestone"))
        second = asyncio.run(generator.embed("quantum computing milestone"))

        assert first == second

    def test_dimension_mismatch_rejected(self, sleep) -> None:
        generator = EmbeddingGenerator(MockLLMProvider(embedding_dimensions=8), dimensions=768, sleep=sleep)

        with pytest.raises(EmbeddingDimensionError) as exc_info:
            asyncio.run(generator.embed("text"))
        assert exc_info.value.expected == 768
        assert exc_info.value.actual == 8

    def test_batches_preserve_order(self, sleep) -> None:
        provider = ScriptedProvider()
        generator = EmbeddingGenerator(provider, batch_size=2, sleep=sleep)
        texts = [f"topic number {i} about item{i}" for i in range(5)]

        vectors = asyncio.run(generator.embed_many(texts))
        expected = [asyncio.run(MockLLMProvider().generate_embedding(text)) for text in texts]

        assert provider.embedding_calls == 3
        assert [list(v) for v in vectors] == expected

    def test_transient_batch_failure_retried(self, sleep) -> None:
        provider = ScriptedProvider(embedding_errors=[TransientCollaboratorError("rate limited")])
        generator = EmbeddingGenerator(provider, sleep=sleep)

        vectors = asyncio.run(generator.embed_all(["a sentence about rivers"]))

        assert vectors[0] is not None
        assert sleep.delays == [1.0]

    def test_failed_batch_left_unembedded(self, sleep) -> None:
        provider = ScriptedProvider(embedding_errors=[None, PermanentCollaboratorError("too long")])
        generator = EmbeddingGenerator(provider, batch_size=2, sleep=sleep)

        vectors = asyncio.run(generator.embed_all(["alpha text", "beta text", "gamma text", "delta text"]))

        assert vectors[0] is not None and vectors[1] is not None
        assert vectors[2] is None and vectors[3] is None

    def test_unreachable_collaborator_raises(self, sleep) -> None:
        provider = ScriptedProvider(embedding_always=CollaboratorUnavailableError("refused"))
        generator = EmbeddingGenerator(provider, sleep=sleep)

        with pytest.raises(CollaboratorUnavailableError):
            asyncio.run(generator.embed_all(["text"]))


def test_embedding_text_uses_title_and_summary() -> None:
    article = make_article(title="Reef Recovery")
    summary = make_summary(article, text="Corals are regrowing.")
    assert embedding_text(article, summary) == "Reef Recovery\n\nCorals are regrowing."
