"""Configuration models."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class PostgresConfig(BaseModel):
    """Postgres configuration for the persistent cache."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("briefly", description="Database name")
    user: str = Field("briefly_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class FetchConfig(BaseModel):
    """Content fetching configuration."""

    timeout: float = Field(30.0, description="Per-request timeout in seconds", gt=0)
    max_redirects: int = Field(3, description="Maximum redirects to follow", ge=0, le=10)
    min_host_interval: float = Field(
        1.0, description="Minimum seconds between requests to the same host", ge=0
    )
    user_agent: str = Field(
        "Briefly/1.0 (article digest; +https://github.com/briefly)",
        description="User-Agent header sent with every request",
    )


class CacheConfig(BaseModel):
    """Cache configuration."""

    backend: str = Field("postgres", description="Cache backend (postgres, memory)")
    content_ttl_hours: float = Field(24, description="Content TTL in hours", gt=0)
    summary_ttl_days: float = Field(7, description="Summary TTL in days", gt=0)


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai, mock)")
    model: str = Field("gpt-4o-mini", description="Chat model name")
    embedding_model: str = Field("text-embedding-3-small", description="Embedding model name")
    embedding_dimensions: int = Field(768, description="Embedding dimension", ge=1)
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API")


class SummarizerConfig(BaseModel):
    """Summarizer configuration."""

    max_words: int = Field(150, description="Target summary length in words", ge=20)
    key_points: int = Field(5, description="Maximum key points", ge=3, le=5)
    max_retries: int = Field(2, description="Retries on transient errors", ge=0)
    retry_delay: float = Field(1.0, description="Initial backoff delay in seconds", ge=0)


class ClusteringConfig(BaseModel):
    """Topic clustering configuration."""

    min_k: int = Field(2, ge=2, le=5)
    max_k: int = Field(5, ge=2, le=5)
    k: Optional[int] = Field(None, description="Fixed cluster count", ge=2, le=5)
    similarity_threshold: float = Field(0.7, ge=0.0, le=1.0)
    duplicate_threshold: float = Field(0.99, ge=0.0, le=1.0)
    max_iterations: int = Field(50, ge=1)

    @model_validator(mode="after")
    def validate_range(self) -> "ClusteringConfig":
        """Validate that min_k does not exceed max_k."""
        if self.min_k > self.max_k:
            raise ValueError(f"min_k ({self.min_k}) must not exceed max_k ({self.max_k})")
        return self


class NarrativeConfig(BaseModel):
    """Narrative synthesis configuration."""

    top_articles: int = Field(3, ge=1, le=10)
    cluster_words: int = Field(200, ge=50)
    executive_words: int = Field(200, ge=50)


class PipelineConfig(BaseModel):
    """Pipeline run configuration."""

    max_concurrent: int = Field(1, description="Concurrent fetch/summarize operations", ge=1, le=20)
    timeout: Optional[float] = Field(None, description="Deadline for a whole run in seconds", gt=0)
    themes: List[str] = Field(default_factory=list, description="Enabled classification themes")


class ConfigModel(BaseModel):
    """Main configuration model."""

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    clustering: ClusteringConfig = Field(default_factory=ClusteringConfig)
    narrative: NarrativeConfig = Field(default_factory=NarrativeConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
