"""Spherical k-means topic clustering."""

from typing import List, Optional, Sequence, Tuple

import numpy as np
from rich.console import Console

from ..errors import ClusterError
from ..models import Article, TopicCluster
from .base import TopicClusterer
from .labels import label_clusters

console = Console()


def normalize_rows(vectors: np.ndarray) -> np.ndarray:
    """L2-normalize each row, rejecting zero and non-finite vectors."""
    if vectors.ndim != 2 or vectors.shape[0] == 0 or vectors.shape[1] == 0:
        raise ClusterError(f"Expected a non-empty 2-D embedding matrix, got shape {vectors.shape}")
    if not np.all(np.isfinite(vectors)):
        raise ClusterError("Embeddings contain non-finite values")
    norms = np.linalg.norm(vectors, axis=1)
    if np.any(norms == 0):
        raise ClusterError("Embeddings contain a zero vector")
    return vectors / norms[:, None]


def cohesion(similarity: np.ndarray, members: np.ndarray) -> float:
    """Average pairwise similarity within a cluster. Singletons are fully cohesive."""
    size = len(members)
    if size < 2:
        return 1.0
    block = similarity[np.ix_(members, members)]
    return float((block.sum() - np.trace(block)) / (size * (size - 1)))


class KMeansClusterer(TopicClusterer):
    """
    K-means over L2-normalized embeddings with cosine similarity.

    Picks the smallest k in [min_k, max_k] whose clusters all have average
    pairwise similarity above ``similarity_threshold``; if none does, the k
    with the best mean cohesion. Seeding is deterministic farthest-point
    selection, so identical input gives identical output.
    """

    def __init__(
        self,
        min_k: int = 2,
        max_k: int = 5,
        k: Optional[int] = None,
        similarity_threshold: float = 0.7,
        duplicate_threshold: float = 0.99,
        max_iterations: int = 50,
    ) -> None:
        if not 1 <= min_k <= max_k:
            raise ValueError(f"Invalid cluster range [{min_k}, {max_k}]")
        self.min_k = min_k
        self.max_k = max_k
        self.k = k
        self.similarity_threshold = similarity_threshold
        self.duplicate_threshold = duplicate_threshold
        self.max_iterations = max_iterations

    def cluster(
        self,
        articles: Sequence[Article],
        embeddings: Sequence[Sequence[float]],
    ) -> List[TopicCluster]:
        if len(articles) != len(embeddings):
            raise ClusterError(f"{len(articles)} articles but {len(embeddings)} embeddings")
        if not articles:
            return []

        vectors = normalize_rows(np.asarray(embeddings, dtype=float))
        similarity = vectors @ vectors.T
        n = len(vectors)

        distinct = self._count_distinct(vectors)
        if n == 1 or distinct == 1 or similarity.min() >= self.duplicate_threshold:
            return build_clusters(articles, vectors, np.zeros(n, dtype=int))

        labels = self._choose_partition(vectors, similarity, distinct)
        return build_clusters(articles, vectors, labels)

    @staticmethod
    def _count_distinct(vectors: np.ndarray) -> int:
        return int(np.unique(np.round(vectors, 9), axis=0).shape[0])

    def _candidate_ks(self, distinct: int) -> List[int]:
        if self.k is not None:
            return [min(self.k, distinct)]
        upper = min(self.max_k, distinct)
        lower = min(self.min_k, upper)
        return list(range(lower, upper + 1))

    def _choose_partition(self, vectors: np.ndarray, similarity: np.ndarray, distinct: int) -> np.ndarray:
        best_labels = None
        best_score = -np.inf

        for k in self._candidate_ks(distinct):
            labels = self._kmeans(vectors, similarity, k)
            scores = [cohesion(similarity, np.flatnonzero(labels == j)) for j in np.unique(labels)]
            if all(score > self.similarity_threshold for score in scores):
                return labels
            mean_score = float(np.mean(scores))
            if mean_score > best_score:
                best_labels, best_score = labels, mean_score

        if best_labels is None:
            raise ClusterError("No candidate cluster count")
        return best_labels

    def _seed(self, vectors: np.ndarray, similarity: np.ndarray, k: int) -> List[int]:
        """Farthest-point seeding starting from the most central vector."""
        seeds = [int(np.argmax(similarity.sum(axis=1)))]
        nearest = similarity[seeds[0]].copy()
        while len(seeds) < k:
            candidate = int(np.argmin(nearest))
            if nearest[candidate] >= 1.0 - 1e-12:
                break
            seeds.append(candidate)
            nearest = np.maximum(nearest, similarity[candidate])
        return seeds

    @staticmethod
    def _assign(vectors: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        return np.argmax(vectors @ centroids.T, axis=1)

    def _kmeans(self, vectors: np.ndarray, similarity: np.ndarray, k: int) -> np.ndarray:
        centroids = vectors[self._seed(vectors, similarity, k)].copy()
        labels = self._assign(vectors, centroids)

        for _ in range(self.max_iterations):
            for j in range(len(centroids)):
                members = vectors[labels == j]
                if len(members) == 0:
                    continue
                mean = members.mean(axis=0)
                norm = np.linalg.norm(mean)
                if norm > 0:
                    centroids[j] = mean / norm
            new_labels = self._assign(vectors, centroids)
            if np.array_equal(new_labels, labels):
                break
            labels = new_labels

        return labels


def build_clusters(
    articles: Sequence[Article],
    vectors: np.ndarray,
    labels: np.ndarray,
) -> List[TopicCluster]:
    """
    Build labelled clusters from an assignment vector.

    Empty clusters are dropped. Clusters are ordered by size, largest
    first, then by their earliest member; members keep input order.
    """
    groups = [np.flatnonzero(labels == j) for j in np.unique(labels)]
    groups = [g for g in groups if len(g) > 0]
    groups.sort(key=lambda g: (-len(g), int(g[0])))

    names = label_clusters([[articles[i] for i in group] for group in groups])
    clusters = []
    for number, (group, (label, keywords)) in enumerate(zip(groups, names), 1):
        centroid = vectors[group].mean(axis=0)
        norm = np.linalg.norm(centroid)
        unit = centroid / norm if norm > 0 else centroid
        confidences = vectors[group] @ unit
        clusters.append(
            TopicCluster(
                id=f"cluster-{number}",
                label=label,
                article_ids=tuple(articles[i].id for i in group),
                centroid=tuple(float(v) for v in centroid),
                keywords=keywords,
                confidences=tuple(float(c) for c in confidences),
            )
        )
    return clusters


def single_cluster(articles: Sequence[Article], embeddings: Sequence[Sequence[float]]) -> TopicCluster:
    """One cluster holding every article, used when clustering fails."""
    label, keywords = label_clusters([list(articles)])[0]
    centroid: Tuple[float, ...] = ()
    confidences: Tuple[float, ...] = ()
    try:
        vectors = normalize_rows(np.asarray(embeddings, dtype=float))
    except (ClusterError, ValueError, TypeError):
        vectors = None

    if vectors is not None and len(vectors) == len(articles):
        mean = vectors.mean(axis=0)
        centroid = tuple(float(v) for v in mean)
        norm = np.linalg.norm(mean)
        if norm > 0:
            confidences = tuple(float(c) for c in vectors @ (mean / norm))

    return TopicCluster(
        id="cluster-1",
        label=label,
        article_ids=tuple(a.id for a in articles),
        centroid=centroid,
        keywords=keywords,
        confidences=confidences,
    )


def validate_partition(clusters: Sequence[TopicCluster], articles: Sequence[Article]) -> None:
    """Check that clusters are disjoint, non-empty and cover every article."""
    seen = []
    for cluster in clusters:
        if not cluster.article_ids:
            raise ClusterError(f"Cluster {cluster.id} is empty")
        seen.extend(cluster.article_ids)
    if len(seen) != len(set(seen)):
        raise ClusterError("Clusters overlap")
    if set(seen) != {a.id for a in articles}:
        raise ClusterError("Clusters do not cover every article")
    if len(clusters) > 5:
        raise ClusterError(f"Too many clusters: {len(clusters)}")


def cluster_or_degrade(
    clusterer: TopicClusterer,
    articles: Sequence[Article],
    embeddings: Sequence[Sequence[float]],
) -> Tuple[List[TopicCluster], Optional[str]]:
    """
    Cluster articles, degrading to a single cluster on any clustering error.

    Returns:
        Tuple of (clusters, reason). ``reason`` is None unless degraded.
    """
    if not articles:
        return [], None
    try:
        clusters = clusterer.cluster(articles, embeddings)
        validate_partition(clusters, articles)
        return list(clusters), None
    except (ClusterError, ValueError, ArithmeticError) as e:
        console.print(f"[yellow]Clustering failed, using a single cluster: {e}[/yellow]")
        return [single_cluster(articles, embeddings)], str(e)
