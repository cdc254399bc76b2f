"""Tagged stage outcomes."""

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Success:
    """The stage produced its normal result."""

    value: Any


@dataclass(frozen=True)
class Degraded:
    """The stage fell back to a lower-quality result."""

    value: Any
    reason: str


@dataclass(frozen=True)
class Skip:
    """The item is dropped; the run continues without it."""

    reason: str
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Fatal:
    """The run cannot continue."""

    reason: str
    error: Optional[BaseException] = None


Outcome = Union[Success, Degraded, Skip, Fatal]
