"""Topic cluster model."""

from typing import Tuple

from pydantic import Field

from .base import FrozenModel


class TopicCluster(FrozenModel):
    """A group of articles about the same topic."""

    id: str = Field(..., description="Cluster id, unique within a run")
    label: str = Field(..., description="Human-readable label")
    article_ids: Tuple[str, ...] = Field(..., description="Member article ids, in input order")
    centroid: Tuple[float, ...] = Field(default_factory=tuple, description="Mean of member vectors")
    keywords: Tuple[str, ...] = Field(default_factory=tuple, description="Label keywords")
    confidences: Tuple[float, ...] = Field(
        default_factory=tuple, description="Per-member similarity to the centroid"
    )

    @property
    def size(self) -> int:
        return len(self.article_ids)
