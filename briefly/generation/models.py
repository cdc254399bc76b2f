"""Data models for generation."""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field


class NarrativeResult(BaseModel):
    """Output of narrative synthesis."""

    executive_summary: str = Field(..., description="Global executive narrative")
    title: str = Field(..., description="Digest title")
    cluster_narratives: Dict[str, str] = Field(default_factory=dict, description="Narrative per cluster id")
    top_articles: Dict[str, Tuple[str, ...]] = Field(
        default_factory=dict, description="Highlighted article ids per cluster id"
    )
    fallback: bool = Field(False, description="Whether any fallback text was used")
    error: Optional[str] = Field(None, description="First error that triggered a fallback")

    class Config:
        """Pydantic config."""

        frozen = True
