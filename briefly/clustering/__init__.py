"""Embedding-based topic clustering."""

from .base import TopicClusterer
from .kmeans import KMeansClusterer, build_clusters, cluster_or_degrade, single_cluster
from .labels import cluster_keywords, label_clusters

__all__ = [
    "TopicClusterer",
    "KMeansClusterer",
    "build_clusters",
    "cluster_or_degrade",
    "single_cluster",
    "cluster_keywords",
    "label_clusters",
]
