"""Topic clusterer interface."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models import Article, TopicCluster


class TopicClusterer(ABC):
    """Partition embedded articles into topic clusters."""

    @abstractmethod
    def cluster(
        self,
        articles: Sequence[Article],
        embeddings: Sequence[Sequence[float]],
    ) -> List[TopicCluster]:
        """
        Cluster articles by their embeddings.

        Args:
            articles: Articles, in input order
            embeddings: One vector per article, same order

        Returns:
            Disjoint clusters covering every article

        Raises:
            ClusterError: If no valid partition can be produced
        """
        pass
