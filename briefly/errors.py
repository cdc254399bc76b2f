"""Error taxonomy for the digest pipeline."""

from typing import Optional


class BrieflyError(Exception):
    """Base class for all pipeline errors."""


class FetchError(BrieflyError):
    """Retrieving or extracting an article failed.

    ``kind`` is one of: network, http, redirect, parse, empty,
    unsupported, transcript.
    """

    def __init__(self, url: str, kind: str, message: str) -> None:
        super().__init__(f"{kind}: {message} ({url})")
        self.url = url
        self.kind = kind
        self.message = message


class CacheError(BrieflyError):
    """The cache store could not be read or written."""


class SummarizeError(BrieflyError):
    """An article could not be summarized."""


class ClusterError(BrieflyError):
    """Clustering could not produce a valid partition."""


class NarrativeError(BrieflyError):
    """Narrative synthesis failed."""


class CollaboratorError(BrieflyError):
    """The text-generation collaborator returned an error."""

    retryable = False

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransientCollaboratorError(CollaboratorError):
    """Timeouts, rate limits and server-side hiccups."""

    retryable = True


class PermanentCollaboratorError(CollaboratorError):
    """The request itself was rejected."""


class CollaboratorUnavailableError(CollaboratorError):
    """The collaborator cannot be reached at all."""

    retryable = True


class EmbeddingDimensionError(BrieflyError):
    """An embedding had the wrong number of dimensions."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected embedding of dimension {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class FatalPipelineError(BrieflyError):
    """The run cannot produce a digest."""


class PipelineTimeoutError(FatalPipelineError):
    """The run exceeded its deadline."""
