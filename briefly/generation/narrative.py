"""Narrative synthesis over topic clusters."""

import asyncio
from typing import Dict, List, Optional, Sequence, Tuple

from rich.console import Console

from ..errors import CollaboratorError, NarrativeError
from ..models import Article, Summary, TopicCluster
from ..text import first_sentence, join_with_and
from .llm_provider import LLMProvider
from .models import NarrativeResult
from .prompts import build_cluster_prompt, build_executive_prompt, parse_titled_response
from .retry import Sleep, call_with_retry

console = Console()


def fallback_title(clusters: Sequence[TopicCluster]) -> str:
    """Digest title from the first three cluster labels."""
    labels = [cluster.label for cluster in clusters[:3]]
    return " & ".join(labels) if labels else "Digest"


def _bullet(article: Article, summary: Optional[Summary]) -> str:
    if summary is not None and summary.key_points:
        point = summary.key_points[0]
    elif summary is not None:
        point = first_sentence(summary.text)
    else:
        point = first_sentence(article.text)
    return f"{article.title}: {point}"


class NarrativeSynthesizer:
    """Turn clusters of summaries into per-cluster narratives and one executive summary."""

    def __init__(
        self,
        provider: LLMProvider,
        top_articles: int = 3,
        cluster_words: int = 200,
        executive_words: int = 200,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.provider = provider
        self.top_articles = top_articles
        self.cluster_words = cluster_words
        self.executive_words = executive_words
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep

    def select_top_articles(
        self,
        cluster: TopicCluster,
        articles: Dict[str, Article],
    ) -> List[Article]:
        """Members ranked by similarity to the centroid, then input order."""
        confidence = dict(zip(cluster.article_ids, cluster.confidences))
        members = [articles[article_id] for article_id in cluster.article_ids if article_id in articles]
        members.sort(key=lambda a: (-confidence.get(a.id, 0.0), a.position))
        return members[: self.top_articles]

    async def _generate(self, prompt: str, max_words: int, description: str) -> str:
        response = await call_with_retry(
            lambda: self.provider.generate_narrative(prompt, max_words),
            max_retries=self.max_retries,
            base_delay=self.retry_delay,
            sleep=self.sleep,
            description=description,
        )
        if not response or not response.strip():
            raise NarrativeError(f"{description}: empty response")
        return response

    async def cluster_narrative(
        self,
        cluster: TopicCluster,
        articles: Dict[str, Article],
        summaries: Dict[str, Summary],
        top: Sequence[Article],
    ) -> str:
        """
        Generate the narrative for one cluster.

        The prompt carries every member's summary; ``top`` only decides
        which members are highlighted.

        Raises:
            CollaboratorError: If generation fails after retries
            NarrativeError: If the response is empty
        """
        members = [articles[article_id] for article_id in cluster.article_ids if article_id in articles]
        entries = []
        for article in members:
            summary = summaries.get(article.id)
            entries.append(
                (
                    article.title,
                    article.url,
                    summary.text if summary else first_sentence(article.text),
                    summary.key_points if summary else (),
                )
            )
        top_ids = {article.id for article in top}
        highlighted = [number for number, article in enumerate(members, 1) if article.id in top_ids]

        prompt = build_cluster_prompt(cluster.label, entries, highlighted, self.cluster_words)
        _, body = parse_titled_response(
            await self._generate(prompt, self.cluster_words, f"Narrative for {cluster.label}")
        )
        if not body:
            raise NarrativeError(f"Narrative for {cluster.label}: empty response")
        return body

    def fallback_cluster_narrative(
        self,
        top: Sequence[Article],
        summaries: Dict[str, Summary],
    ) -> str:
        """Bullet points for the top articles of a cluster."""
        return "\n".join(f"- {_bullet(article, summaries.get(article.id))}" for article in top)

    def fallback_executive_summary(
        self,
        clusters: Sequence[TopicCluster],
        top: Dict[str, List[Article]],
        summaries: Dict[str, Summary],
    ) -> str:
        """Cluster labels followed by their top bullet points."""
        labels = [cluster.label for cluster in clusters]
        parts = [f"This digest covers {join_with_and(labels)}."]
        for cluster in clusters:
            parts.append("")
            parts.append(cluster.label)
            parts.append(self.fallback_cluster_narrative(top.get(cluster.id, []), summaries))
        return "\n".join(parts).strip()

    async def synthesize(
        self,
        clusters: Sequence[TopicCluster],
        articles: Dict[str, Article],
        summaries: Dict[str, Summary],
    ) -> NarrativeResult:
        """
        Produce cluster narratives and the executive summary.

        Collaborator failures never propagate: the affected narrative is
        replaced by bullet points and the result is marked as a fallback.
        """
        top = {cluster.id: self.select_top_articles(cluster, articles) for cluster in clusters}
        narratives: Dict[str, str] = {}
        errors: List[str] = []

        for cluster in clusters:
            try:
                narratives[cluster.id] = await self.cluster_narrative(
                    cluster, articles, summaries, top[cluster.id]
                )
            except (CollaboratorError, NarrativeError) as e:
                console.print(f"[yellow]Narrative fallback for '{cluster.label}': {e}[/yellow]")
                errors.append(str(e))
                narratives[cluster.id] = self.fallback_cluster_narrative(top[cluster.id], summaries)

        title, executive = await self._executive(clusters, narratives, top, summaries, errors)

        return NarrativeResult(
            executive_summary=executive,
            title=title,
            cluster_narratives=narratives,
            top_articles={cid: tuple(a.id for a in members) for cid, members in top.items()},
            fallback=bool(errors),
            error=errors[0] if errors else None,
        )

    async def _executive(
        self,
        clusters: Sequence[TopicCluster],
        narratives: Dict[str, str],
        top: Dict[str, List[Article]],
        summaries: Dict[str, Summary],
        errors: List[str],
    ) -> Tuple[str, str]:
        if not clusters:
            return fallback_title(clusters), ""

        sections = [(c.label, c.size, narratives[c.id]) for c in clusters]
        prompt = build_executive_prompt(sections, self.executive_words)
        try:
            title, body = parse_titled_response(
                await self._generate(prompt, self.executive_words, "Executive summary")
            )
            if not body:
                raise NarrativeError("Executive summary: empty response")
            return title or fallback_title(clusters), body
        except (CollaboratorError, NarrativeError) as e:
            console.print(f"[yellow]Executive summary fallback: {e}[/yellow]")
            errors.append(str(e))
            return fallback_title(clusters), self.fallback_executive_summary(clusters, top, summaries)
