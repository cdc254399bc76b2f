"""End-to-end tests for the digest pipeline."""

import asyncio

import httpx
import pytest

from briefly.cache import CacheManager, MemoryCacheStore
from briefly.config import Config, ConfigModel
from briefly.errors import (
    CollaboratorUnavailableError,
    FatalPipelineError,
    PermanentCollaboratorError,
    PipelineTimeoutError,
)
from briefly.generation import EmbeddingGenerator, MockLLMProvider, NarrativeSynthesizer, Summarizer
from briefly.ingestion import ContentFetcher
from briefly.pipeline import DigestPipeline
from tests.helpers import RecordingSleep, ScriptedProvider, html_route, make_transport

QUANTUM = [
    "Quantum processors reached a new error correction milestone this week.",
    "Researchers scaled superconducting qubit arrays beyond earlier limits.",
]
CLIMATE = [
    "Ocean temperatures hit a record high according to a new climate survey.",
    "Scientists warn that warming seas threaten coral reef ecosystems.",
]


def news_site(count: int, failing=()):
    """URLs on distinct hosts alternating between two topics."""
    urls = []
    routes = {}
    for i in range(count):
        url = f"https://news{i}.example.com/story"
        urls.append(url)
        if i in failing:
            routes[url] = (500, {}, b"internal error")
        elif i % 2 == 0:
            routes[url] = html_route(f"Quantum computing update {i}", QUANTUM + [f"Lab {i} shared the data."])
        else:
            routes[url] = html_route(f"Ocean climate report {i}", CLIMATE + [f"Station {i} logged it."])
    return urls, routes


def delayed(route, delay: float):
    async def respond(request):
        await asyncio.sleep(delay)
        status, headers, content = route
        return httpx.Response(status, headers=headers, content=content)

    return respond


def build_pipeline(routes, provider=None, cache=None, max_concurrent=1, **kwargs) -> DigestPipeline:
    provider = provider or ScriptedProvider()
    sleep = RecordingSleep()
    return DigestPipeline(
        provider,
        fetcher=ContentFetcher(min_host_interval=0, transport=make_transport(routes)),
        cache=cache or CacheManager(MemoryCacheStore()),
        summarizer=Summarizer(provider, sleep=sleep),
        embedder=EmbeddingGenerator(provider, sleep=sleep),
        synthesizer=NarrativeSynthesizer(provider, sleep=sleep),
        max_concurrent=max_concurrent,
        show_progress=False,
        **kwargs,
    )


def digest_shape(digest):
    return [(section.cluster.label, [a.url for a in section.articles]) for section in digest.sections]


class TestDigestPipeline:
    """Tests for DigestPipeline.run()."""

    def test_skips_failed_fetch_and_reports_it(self) -> None:
        urls, routes = news_site(10, failing={4})
        pipeline = build_pipeline(routes)

        digest = asyncio.run(pipeline.run(urls, title="Weekly"))

        assert len(digest.articles) == 9
        assert urls[4] not in {a.url for a in digest.articles}
        assert pipeline.report.failed == 1
        assert pipeline.report.fetched == 9
        assert pipeline.report.failures[0].url == urls[4]
        assert pipeline.report.failures[0].kind == "http"
        assert digest.metadata.title == "Weekly"
        assert digest.metadata.article_count == 9
        assert digest.executive_summary

    def test_every_article_in_exactly_one_section_with_a_summary(self) -> None:
        urls, routes = news_site(6)

        digest = asyncio.run(build_pipeline(routes).run(urls))

        ids = [a.id for a in digest.articles]
        assert len(ids) == len(set(ids)) == 6
        for section in digest.sections:
            assert len(section.summaries) == len(section.articles)
            assert all(a.topic_cluster == section.cluster.label for a in section.articles)
            positions = [a.position for a in section.articles]
            assert positions == sorted(positions)

    def test_output_independent_of_concurrency(self) -> None:
        urls, routes = news_site(8)
        slow_first = {url: delayed(route, 0.002 * (len(urls) - i)) for i, (url, route) in enumerate(routes.items())}

        sequential = asyncio.run(build_pipeline(slow_first, max_concurrent=1).run(urls))
        concurrent = asyncio.run(build_pipeline(slow_first, max_concurrent=5).run(urls))

        assert digest_shape(sequential) == digest_shape(concurrent)
        assert sequential.executive_summary == concurrent.executive_summary

    def test_duplicate_urls_processed_once(self) -> None:
        urls, routes = news_site(2)
        pipeline = build_pipeline(routes)

        digest = asyncio.run(pipeline.run(urls + [urls[0] + "?utm_source=newsletter", urls[1] + "/"]))

        assert len(digest.articles) == 2
        assert pipeline.report.valid == 2

    def test_zero_valid_urls_is_fatal(self) -> None:
        provider = ScriptedProvider()

        with pytest.raises(FatalPipelineError):
            asyncio.run(build_pipeline({}, provider).run(["not a url", "ftp://example.com/file"]))
        assert provider.summary_calls == 0

    def test_all_fetches_failed_is_fatal(self) -> None:
        urls, routes = news_site(3, failing={0, 1, 2})
        pipeline = build_pipeline(routes)

        with pytest.raises(FatalPipelineError):
            asyncio.run(pipeline.run(urls))
        assert pipeline.report.failed == 3

    def test_unreachable_collaborator_is_fatal(self) -> None:
        urls, routes = news_site(3)
        provider = ScriptedProvider(summary_always=CollaboratorUnavailableError("connection refused"))

        with pytest.raises(FatalPipelineError) as exc_info:
            asyncio.run(build_pipeline(routes, provider).run(urls))
        assert not isinstance(exc_info.value, PipelineTimeoutError)

    def test_deadline_cancels_run(self) -> None:
        urls, routes = news_site(3)
        stalled = {url: delayed(route, 5.0) for url, route in routes.items()}
        pipeline = build_pipeline(stalled, max_concurrent=3)

        with pytest.raises(PipelineTimeoutError):
            asyncio.run(pipeline.run(urls, timeout=0.05))
        assert pipeline.fetcher._client is None

    def test_summary_fallbacks_still_produce_digest(self) -> None:
        urls, routes = news_site(4)
        provider = ScriptedProvider(summary_always=PermanentCollaboratorError("content policy"))
        pipeline = build_pipeline(routes, provider)

        digest = asyncio.run(pipeline.run(urls))

        assert digest.metadata.fallback_summaries == 4
        assert pipeline.report.summary_fallbacks == 4
        assert all(s.is_fallback for section in digest.sections for s in section.summaries)

    def test_narrative_fallback_still_produces_digest(self) -> None:
        urls, routes = news_site(4)
        provider = ScriptedProvider(narrative_always=PermanentCollaboratorError("rejected"))

        digest = asyncio.run(build_pipeline(routes, provider).run(urls))

        assert digest.metadata.narrative_fallback
        assert digest.executive_summary.startswith("This digest covers")

    def test_unembedded_articles_go_to_other_reads(self) -> None:
        urls, routes = news_site(4)
        provider = ScriptedProvider(embedding_always=PermanentCollaboratorError("too long"))
        pipeline = build_pipeline(routes, provider)

        digest = asyncio.run(pipeline.run(urls))

        assert [s.cluster.label for s in digest.sections] == ["Other Reads"]
        assert len(digest.articles) == 4
        assert pipeline.report.embedded == 0

    def test_second_run_served_from_cache(self) -> None:
        urls, routes = news_site(4)
        provider = ScriptedProvider()
        cache = CacheManager(MemoryCacheStore())

        asyncio.run(build_pipeline(routes, provider, cache=cache).run(urls))
        calls_after_first = provider.summary_calls
        pipeline = build_pipeline(routes, provider, cache=cache)
        asyncio.run(pipeline.run(urls))

        assert provider.summary_calls == calls_after_first
        assert pipeline.report.cached == 4
        assert pipeline.report.summaries_cached == 4

    def test_themes_classified(self) -> None:
        urls, routes = news_site(4)
        pipeline = build_pipeline(routes, themes=["Quantum Computing", "Ocean Climate"])

        digest = asyncio.run(pipeline.run(urls))

        themes = {a.url: a.theme for a in digest.articles}
        assert themes[urls[0]] == "Quantum Computing"
        assert themes[urls[1]] == "Ocean Climate"


class TestFromConfig:
    """Tests for DigestPipeline.from_config()."""

    def test_builds_from_config(self, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = Config(
            config=ConfigModel(
                pipeline={"max_concurrent": 5, "timeout": 120},
                clustering={"max_k": 4},
                llm={"embedding_dimensions": 256},
            )
        )

        pipeline = DigestPipeline.from_config(config)

        assert isinstance(pipeline.provider, MockLLMProvider)
        assert pipeline.max_concurrent == 5
        assert pipeline.timeout == 120
        assert pipeline.clusterer.max_k == 4
        assert pipeline.embedder.dimensions == 256
        assert pipeline.cache.content_ttl.total_seconds() == 24 * 3600
