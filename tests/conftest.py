"""Pytest configuration and shared fixtures."""

import hashlib

import pytest

from vector_gateway.config import SearchSettings, Settings
from vector_gateway.embeddings.service import EmbeddingProvider
from vector_gateway.exceptions import EmbeddingProviderError
from vector_gateway.service import VectorStoreService
from vector_gateway.vectorstore.memory import InMemoryVectorIndex


class RecordingEmbeddingProvider(EmbeddingProvider):
    """Deterministic embedding provider that records every call."""

    def __init__(self, dimensions: int = 3, fail: bool = False) -> None:
        self._dims = dimensions
        self.fail = fail
        self.embed_calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    @property
    def model_name(self) -> str:
        return "recording-test-model"

    @property
    def dimensions(self) -> int | None:
        return self._dims

    def vector_for(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [(digest[i] + 1) / 256.0 for i in range(self._dims)]

    @property
    def total_calls(self) -> int:
        return len(self.embed_calls) + len(self.batch_calls)

    async def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        if self.fail:
            raise EmbeddingProviderError("provider unavailable")
        return self.vector_for(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        if self.fail:
            raise EmbeddingProviderError("provider unavailable")
        return [self.vector_for(t) for t in texts]


@pytest.fixture
def settings() -> Settings:
    """Settings with default search parameters."""
    return Settings(search=SearchSettings(default_limit=10, default_hnsw_ef=128))


@pytest.fixture
def provider() -> RecordingEmbeddingProvider:
    """Recording embedding provider producing 3-dimensional vectors."""
    return RecordingEmbeddingProvider(dimensions=3)


@pytest.fixture
def index() -> InMemoryVectorIndex:
    """Empty in-memory vector index."""
    return InMemoryVectorIndex()


@pytest.fixture
def service(
    index: InMemoryVectorIndex,
    provider: RecordingEmbeddingProvider,
    settings: Settings,
) -> VectorStoreService:
    """Service with an embedding provider over the in-memory index."""
    return VectorStoreService(index, provider, settings)


@pytest.fixture
def vector_only_service(
    index: InMemoryVectorIndex,
    settings: Settings,
) -> VectorStoreService:
    """Service without an embedding provider."""
    return VectorStoreService(index, None, settings)


@pytest.fixture
def provider_factory() -> type[RecordingEmbeddingProvider]:
    """The recording provider class, for tests needing custom instances."""
    return RecordingEmbeddingProvider
