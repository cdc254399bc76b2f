"""Tests for narrative synthesis."""

import asyncio

from briefly.errors import PermanentCollaboratorError, TransientCollaboratorError
from briefly.generation import NarrativeSynthesizer, ThemeClassifier, fallback_title
from briefly.models import TopicCluster
from tests.helpers import ScriptedProvider, make_article, make_summary


def cluster_fixture(size: int = 5, label: str = "Ocean Science", cluster_id: str = "cluster-1"):
    articles = [
        make_article(f"https://example.com/{cluster_id}/{i}", title=f"{label} story {i}", position=i)
        for i in range(size)
    ]
    summaries = {
        a.id: make_summary(a, text=f"Distinct finding number {i} for {label}.") for i, a in enumerate(articles)
    }
    # Confidence increases with position, so the last members rank highest
    cluster = TopicCluster(
        id=cluster_id,
        label=label,
        article_ids=tuple(a.id for a in articles),
        confidences=tuple(0.5 + 0.1 * i for i in range(size)),
    )
    return cluster, {a.id: a for a in articles}, summaries


class TestNarrativeSynthesizer:
    """Tests for NarrativeSynthesizer."""

    def test_prompt_includes_every_member_summary(self, sleep) -> None:
        provider = ScriptedProvider()
        cluster, articles, summaries = cluster_fixture(5)

        result = asyncio.run(NarrativeSynthesizer(provider, sleep=sleep).synthesize([cluster], articles, summaries))

        cluster_prompt = provider.narrative_prompts[0]
        for summary in summaries.values():
            assert summary.text in cluster_prompt
        assert "Lead with the highlighted articles: [3], [4], [5]." in cluster_prompt
        assert not result.fallback
        assert result.title == "Mock Digest"
        assert result.executive_summary

    def test_top_articles_by_confidence_then_position(self, sleep) -> None:
        cluster, articles, _ = cluster_fixture(5)
        synthesizer = NarrativeSynthesizer(ScriptedProvider(), sleep=sleep)

        top = synthesizer.select_top_articles(cluster, articles)

        assert [a.position for a in top] == [4, 3, 2]

    def test_top_articles_ties_keep_input_order(self, sleep) -> None:
        cluster, articles, _ = cluster_fixture(4)
        cluster = cluster.model_copy(update={"confidences": ()})

        top = NarrativeSynthesizer(ScriptedProvider(), sleep=sleep).select_top_articles(cluster, articles)

        assert [a.position for a in top] == [0, 1, 2]

    def test_fallback_when_collaborator_fails(self, sleep) -> None:
        provider = ScriptedProvider(narrative_always=PermanentCollaboratorError("rejected"))
        first = cluster_fixture(3, "Ocean Science", "cluster-1")
        second = cluster_fixture(2, "Space Launches", "cluster-2")
        articles = {**first[1], **second[1]}
        summaries = {**first[2], **second[2]}

        result = asyncio.run(
            NarrativeSynthesizer(provider, sleep=sleep).synthesize([first[0], second[0]], articles, summaries)
        )

        assert result.fallback
        assert result.error
        assert result.title == "Ocean Science & Space Launches"
        assert result.executive_summary.startswith("This digest covers Ocean Science and Space Launches.")
        for narrative in result.cluster_narratives.values():
            assert narrative.startswith("- ")
        assert "Point about Ocean Science story 2" in result.cluster_narratives["cluster-1"]

    def test_transient_narrative_failure_retried(self, sleep) -> None:
        provider = ScriptedProvider(narrative_errors=[TransientCollaboratorError("busy")])
        cluster, articles, summaries = cluster_fixture(2)

        result = asyncio.run(NarrativeSynthesizer(provider, sleep=sleep).synthesize([cluster], articles, summaries))

        assert not result.fallback
        assert sleep.delays == [1.0]

    def test_executive_failure_only(self, sleep) -> None:
        provider = ScriptedProvider(narrative_errors=[None, PermanentCollaboratorError("rejected")])
        cluster, articles, summaries = cluster_fixture(2)

        result = asyncio.run(NarrativeSynthesizer(provider, sleep=sleep).synthesize([cluster], articles, summaries))

        assert result.fallback
        assert not result.cluster_narratives["cluster-1"].startswith("- ")
        assert result.executive_summary.startswith("This digest covers Ocean Science.")


def test_fallback_title() -> None:
    clusters = [
        TopicCluster(id=f"c{i}", label=label, article_ids=(f"a{i}",))
        for i, label in enumerate(["AI", "Climate", "Space", "Health"])
    ]
    assert fallback_title(clusters) == "AI & Climate & Space"
    assert fallback_title([]) == "Digest"


class TestThemeClassifier:
    """Tests for ThemeClassifier."""

    def test_assigns_best_theme(self) -> None:
        article = make_article(title="Battery storage for solar energy", text="Grid batteries store solar power.")
        classifier = ThemeClassifier(ScriptedProvider(), ["Solar Energy", "Space Travel"])

        classified = asyncio.run(classifier.classify(article))

        assert classified.theme == "Solar Energy"
        assert classified.theme_relevance == 1.0
        assert article.theme is None

    def test_no_match_leaves_article_unchanged(self) -> None:
        article = make_article(title="Cooking pasta", text="Boil water first.")
        classifier = ThemeClassifier(ScriptedProvider(), ["Space Travel"])

        assert asyncio.run(classifier.classify(article)) == article
