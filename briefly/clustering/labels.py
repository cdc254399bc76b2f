"""Post-hoc cluster labels."""

from collections import Counter
from typing import List, Sequence, Tuple

from ..models import Article
from ..text import tokenize


def cluster_keywords(members: Sequence[Article], limit: int = 3) -> List[str]:
    """Most frequent title terms among the members, first appearance breaking ties."""
    counts: Counter = Counter()
    first_seen = {}
    for article in members:
        for token in tokenize(article.title):
            counts[token] += 1
            first_seen.setdefault(token, len(first_seen))

    ranked = sorted(counts, key=lambda token: (-counts[token], first_seen[token]))
    return ranked[:limit]


def label_clusters(groups: Sequence[Sequence[Article]]) -> List[Tuple[str, Tuple[str, ...]]]:
    """
    Derive a unique label and keywords for each group.

    Groups without usable title terms are named ``Topic N``.
    """
    labels = []
    used = set()
    for number, members in enumerate(groups, 1):
        keywords = cluster_keywords(members)
        label = " / ".join(word.capitalize() for word in keywords) or f"Topic {number}"
        if label in used:
            label = f"{label} ({number})"
        used.add(label)
        labels.append((label, tuple(keywords)))
    return labels
