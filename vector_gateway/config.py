"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration.

    Targets OpenAI-compatible ``/embeddings`` endpoints (OpenAI,
    OpenRouter, text-embeddings-inference, vLLM).
    """

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="http://localhost:8080",
        description="Embedding service base URL",
    )
    model: str = Field(
        default="BAAI/bge-large-en-v1.5",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token (optional for local servers)",
    )
    dimensions: int | None = Field(
        default=None,
        description="Embedding dimensions override for unknown models",
    )
    batch_size: int = Field(
        default=32,
        description="Maximum texts per embedding HTTP request",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        description="Retries on rate limit, server and transport errors",
    )
    retry_base_delay: float = Field(
        default=0.5,
        description="Initial backoff delay in seconds",
    )
    retry_max_delay: float = Field(
        default=8.0,
        description="Upper bound for a single backoff delay in seconds",
    )
    site_url: str | None = Field(
        default=None,
        description="Sent as HTTP-Referer for provider attribution",
    )
    site_name: str | None = Field(
        default=None,
        description="Sent as X-Title for provider attribution",
    )
    cache_size: int = Field(
        default=0,
        description="LRU embedding cache entries (0 disables the cache)",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    timeout: int = Field(
        default=30,
        description="Request timeout in seconds",
    )
    upsert_batch_size: int = Field(
        default=256,
        description="Maximum points per upsert request",
    )


class SearchSettings(BaseSettings):
    """Search defaults surfaced to callers."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    default_limit: int = Field(
        default=10,
        description="Result limit when the query does not set one",
    )
    default_hnsw_ef: int = Field(
        default=128,
        description="HNSW search breadth when the query does not set one",
    )
    default_exact: bool = Field(
        default=False,
        description="Use exact (brute-force) search by default",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    # Nested settings
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
