"""Tests for application configuration."""

import os
from unittest.mock import patch

from vector_gateway.config import (
    EmbeddingSettings,
    Environment,
    QdrantSettings,
    SearchSettings,
    Settings,
)


class TestEmbeddingSettings:
    """Tests for embedding configuration."""

    def test_default_values(self) -> None:
        """Default values for embedding provider."""
        settings = EmbeddingSettings()
        assert settings.base_url == "http://localhost:8080"
        assert settings.model == "BAAI/bge-large-en-v1.5"
        assert settings.batch_size == 32
        assert settings.max_retries == 3
        assert settings.cache_size == 0
        assert settings.api_key is None

    def test_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"EMBEDDING_BATCH_SIZE": "64"}):
            settings = EmbeddingSettings()
            assert settings.batch_size == 64

    def test_api_key_is_secret_when_set(self) -> None:
        """API key should be masked when set."""
        with patch.dict(os.environ, {"EMBEDDING_API_KEY": "sk-secret"}):
            settings = EmbeddingSettings()
            assert settings.api_key is not None
            assert "sk-secret" not in str(settings.api_key)
            assert settings.api_key.get_secret_value() == "sk-secret"


class TestQdrantSettings:
    """Tests for Qdrant configuration."""

    def test_default_values(self) -> None:
        """Default values for Qdrant."""
        settings = QdrantSettings()
        assert settings.url == "http://localhost:6333"
        assert settings.api_key is None
        assert settings.upsert_batch_size == 256

    def test_api_key_is_secret_when_set(self) -> None:
        """API key should be masked when set."""
        with patch.dict(os.environ, {"QDRANT_API_KEY": "secret-key"}):
            settings = QdrantSettings()
            assert settings.api_key is not None
            assert "secret-key" not in str(settings.api_key)
            assert settings.api_key.get_secret_value() == "secret-key"


class TestSearchSettings:
    """Tests for search defaults."""

    def test_default_values(self) -> None:
        """Defaults match the documented search constants."""
        settings = SearchSettings()
        assert settings.default_limit == 10
        assert settings.default_hnsw_ef == 128
        assert settings.default_exact is False

    def test_env_override(self) -> None:
        """Environment variables override defaults."""
        with patch.dict(os.environ, {"SEARCH_DEFAULT_LIMIT": "25"}):
            assert SearchSettings().default_limit == 25


class TestSettings:
    """Tests for main application settings."""

    def test_default_environment(self) -> None:
        """Default environment is development."""
        settings = Settings()
        assert settings.environment == Environment.DEVELOPMENT

    def test_nested_settings_loaded(self) -> None:
        """Nested settings are initialized."""
        settings = Settings()
        assert isinstance(settings.embedding, EmbeddingSettings)
        assert isinstance(settings.qdrant, QdrantSettings)
        assert isinstance(settings.search, SearchSettings)

    def test_environment_enum(self) -> None:
        """Environment can be set via string."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            settings = Settings()
            assert settings.environment == Environment.PRODUCTION
