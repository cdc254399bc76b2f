"""Pipeline orchestration."""

from .assembler import DigestAssembler, OrderingPolicy, identity_ordering
from .orchestrator import DigestPipeline, FailureRecord, PipelineStage, RunReport, get_llm_provider
from .outcome import Degraded, Fatal, Outcome, Skip, Success

__all__ = [
    "DigestAssembler",
    "DigestPipeline",
    "FailureRecord",
    "OrderingPolicy",
    "PipelineStage",
    "RunReport",
    "get_llm_provider",
    "identity_ordering",
    "Degraded",
    "Fatal",
    "Outcome",
    "Skip",
    "Success",
]
