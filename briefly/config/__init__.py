"""Configuration management for Briefly."""

from .loader import DEFAULT_CONFIG_PATH, Config, load_config, save_config
from .models import (
    CacheConfig,
    ClusteringConfig,
    ConfigModel,
    FetchConfig,
    LLMConfig,
    NarrativeConfig,
    PipelineConfig,
    PostgresConfig,
    SummarizerConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "CacheConfig",
    "ClusteringConfig",
    "FetchConfig",
    "LLMConfig",
    "NarrativeConfig",
    "PipelineConfig",
    "PostgresConfig",
    "SummarizerConfig",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "save_config",
]
