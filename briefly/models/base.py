"""Base model class for pipeline records."""

from datetime import datetime, timezone

from pydantic import BaseModel


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class FrozenModel(BaseModel):
    """Base model for immutable pipeline records."""

    class Config:
        """Pydantic config."""

        frozen = True
        from_attributes = True
