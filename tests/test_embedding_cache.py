"""Tests for the embedding cache."""

from unittest.mock import AsyncMock

import pytest

from vector_gateway.embeddings.cache import CachedEmbeddingProvider
from vector_gateway.exceptions import ConfigurationError, EmbeddingProviderError, ErrorCode


class TestCachedEmbeddingProvider:
    """Tests for CachedEmbeddingProvider."""

    def test_rejects_non_positive_size(self, provider) -> None:
        """Cache size must be positive."""
        with pytest.raises(ConfigurationError) as exc_info:
            CachedEmbeddingProvider(provider, max_size=0)

        assert exc_info.value.details["max_size"] == 0

    def test_delegates_metadata(self, provider) -> None:
        """Model name and dimensions come from the wrapped provider."""
        cached = CachedEmbeddingProvider(provider)
        assert cached.model_name == provider.model_name
        assert cached.dimensions == 3

    @pytest.mark.asyncio
    async def test_repeat_text_served_from_cache(self, provider) -> None:
        """A second lookup does not reach the provider."""
        cached = CachedEmbeddingProvider(provider)

        first = await cached.embed("hello")
        second = await cached.embed("hello")

        assert first == second == provider.vector_for("hello")
        assert provider.batch_calls == [["hello"]]

    @pytest.mark.asyncio
    async def test_batch_forwards_unique_misses(self, provider) -> None:
        """Only missing texts are forwarded, once each."""
        cached = CachedEmbeddingProvider(provider)
        await cached.embed("a")

        vectors = await cached.embed_batch(["a", "b", "b", "c"])

        assert provider.batch_calls[-1] == ["b", "c"]
        assert vectors == [provider.vector_for(t) for t in ["a", "b", "b", "c"]]

    @pytest.mark.asyncio
    async def test_lru_eviction(self, provider) -> None:
        """The least recently used entry is evicted first."""
        cached = CachedEmbeddingProvider(provider, max_size=2)
        await cached.embed("a")
        await cached.embed("b")
        await cached.embed("a")
        await cached.embed("c")

        assert cached.size == 2
        provider.batch_calls.clear()
        await cached.embed("a")
        assert provider.batch_calls == []
        await cached.embed("b")
        assert provider.batch_calls == [["b"]]

    @pytest.mark.asyncio
    async def test_invalidate_and_clear(self, provider) -> None:
        """Entries can be dropped individually or all at once."""
        cached = CachedEmbeddingProvider(provider)
        await cached.embed_batch(["a", "b"])

        assert await cached.invalidate("a") is True
        assert await cached.invalidate("a") is False
        assert cached.size == 1

        await cached.clear()
        assert cached.size == 0

    @pytest.mark.asyncio
    async def test_returned_vectors_are_copies(self, provider) -> None:
        """Mutating a result does not corrupt the cache."""
        cached = CachedEmbeddingProvider(provider)
        vector = await cached.embed("a")
        vector[0] = 42.0

        assert await cached.embed("a") == provider.vector_for("a")

    @pytest.mark.asyncio
    async def test_failure_not_cached(self, provider_factory) -> None:
        """Errors propagate and leave the cache empty."""
        cached = CachedEmbeddingProvider(provider_factory(fail=True))

        with pytest.raises(EmbeddingProviderError):
            await cached.embed("a")

        assert cached.size == 0

    @pytest.mark.asyncio
    async def test_short_inner_response(self) -> None:
        """A wrong vector count from the inner provider is rejected."""
        inner = AsyncMock()
        inner.embed_batch.return_value = [[0.1]]
        cached = CachedEmbeddingProvider(inner)

        with pytest.raises(EmbeddingProviderError) as exc_info:
            await cached.embed_batch(["a", "b"])

        assert exc_info.value.code == ErrorCode.EMBEDDING_INVALID_RESPONSE
        assert cached.size == 0
