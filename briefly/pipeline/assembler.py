"""Digest assembly."""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from ..generation import NarrativeResult
from ..models import Article, Digest, DigestMetadata, DigestSection, Summary, TopicCluster
from ..models.base import utcnow

OrderingPolicy = Callable[[Sequence[DigestSection]], Sequence[DigestSection]]


def identity_ordering(sections: Sequence[DigestSection]) -> Sequence[DigestSection]:
    """Keep sections in the order the clusterer produced them."""
    return sections


def _words(text: Optional[str]) -> int:
    return len(text.split()) if text else 0


class DigestAssembler:
    """Combine clusters, summaries and narratives into an immutable digest."""

    def __init__(self, ordering: OrderingPolicy = identity_ordering) -> None:
        self.ordering = ordering

    def build_sections(
        self,
        clusters: Sequence[TopicCluster],
        articles: Dict[str, Article],
        summaries: Dict[str, Summary],
        narratives: Dict[str, str],
    ) -> List[DigestSection]:
        sections = []
        for cluster in clusters:
            members = [articles[article_id] for article_id in cluster.article_ids]
            missing = [a.id for a in members if a.id not in summaries]
            if missing:
                raise ValueError(f"No summary for articles {missing} in {cluster.id}")
            sections.append(
                DigestSection(
                    cluster=cluster,
                    articles=tuple(members),
                    summaries=tuple(summaries[a.id] for a in members),
                    narrative=narratives.get(cluster.id),
                )
            )
        return sections

    def assemble(
        self,
        clusters: Sequence[TopicCluster],
        articles: Dict[str, Article],
        summaries: Dict[str, Summary],
        narrative: NarrativeResult,
        title: Optional[str] = None,
        generated_at: Optional[datetime] = None,
    ) -> Digest:
        """
        Assemble the digest.

        Word count covers summaries, cluster narratives and the executive
        summary. No network or collaborator calls happen here.
        """
        sections = tuple(
            self.ordering(self.build_sections(clusters, articles, summaries, narrative.cluster_narratives))
        )

        word_count = _words(narrative.executive_summary)
        for section in sections:
            word_count += _words(section.narrative)
            word_count += sum(summary.word_count for summary in section.summaries)

        top_ids = tuple(
            article_id
            for section in sections
            for article_id in narrative.top_articles.get(section.cluster.id, ())
        )

        metadata = DigestMetadata(
            title=title or narrative.title,
            generated_at=generated_at or utcnow(),
            article_count=sum(len(section.articles) for section in sections),
            word_count=word_count,
            cluster_count=len(sections),
            fallback_summaries=sum(
                1 for section in sections for summary in section.summaries if summary.is_fallback
            ),
            narrative_fallback=narrative.fallback,
        )

        return Digest(
            sections=sections,
            executive_summary=narrative.executive_summary,
            top_article_ids=top_ids,
            metadata=metadata,
        )
