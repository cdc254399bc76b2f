"""Summary model."""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import Field

from .base import FrozenModel, utcnow

FALLBACK_MODEL = "fallback"


class Summary(FrozenModel):
    """Generated summary of one or more articles."""

    id: str = Field(..., description="Summary id")
    article_ids: Tuple[str, ...] = Field(..., description="Source article ids")
    url: str = Field(..., description="Source URL")
    content_hash: str = Field(..., description="Hash of the content that was summarized")
    text: str = Field(..., description="Summary text")
    key_points: Tuple[str, ...] = Field(default_factory=tuple, description="Ordered key points")
    title: Optional[str] = Field(None, description="Generated title, if the article had none")
    model: str = Field(..., description="Collaborator model identifier, or 'fallback'")
    generated_at: datetime = Field(default_factory=utcnow, description="Generation timestamp")

    @property
    def is_fallback(self) -> bool:
        """Whether this summary is a naive excerpt rather than a generated one."""
        return self.model == FALLBACK_MODEL

    @property
    def word_count(self) -> int:
        return len(self.text.split())
