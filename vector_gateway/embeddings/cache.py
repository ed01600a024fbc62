"""Size-bounded LRU cache in front of an embedding provider."""

import asyncio
from collections import OrderedDict

from vector_gateway.embeddings.service import EmbeddingProvider
from vector_gateway.exceptions import ConfigurationError, EmbeddingProviderError, ErrorCode
from vector_gateway.observability.metrics import track_cache_lookups


class CachedEmbeddingProvider(EmbeddingProvider):
    """Embedding provider that remembers vectors by exact text.

    Holds at most ``max_size`` entries and evicts the least recently used.
    A batch forwards only its cache misses, deduplicated, to the wrapped
    provider in a single ``embed_batch`` call.
    """

    def __init__(self, provider: EmbeddingProvider, max_size: int = 1024) -> None:
        if max_size <= 0:
            raise ConfigurationError(
                f"Embedding cache size must be positive, got {max_size}",
                details={"max_size": max_size},
            )
        self._provider = provider
        self._max_size = max_size
        self._entries: OrderedDict[str, list[float]] = OrderedDict()
        self._lock = asyncio.Lock()

    @property
    def model_name(self) -> str:
        return self._provider.model_name

    @property
    def dimensions(self) -> int | None:
        return self._provider.dimensions

    @property
    def size(self) -> int:
        return len(self._entries)

    async def close(self) -> None:
        await self._provider.close()

    async def clear(self) -> None:
        """Drop every cached vector."""
        async with self._lock:
            self._entries.clear()

    async def invalidate(self, text: str) -> bool:
        """Drop one cached vector; returns whether it was present."""
        async with self._lock:
            return self._entries.pop(text, None) is not None

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        found: dict[str, list[float]] = {}
        async with self._lock:
            for text in texts:
                if text in self._entries and text not in found:
                    self._entries.move_to_end(text)
                    found[text] = self._entries[text]

        hits = sum(1 for t in texts if t in found)
        misses = list(dict.fromkeys(t for t in texts if t not in found))
        track_cache_lookups(hits=hits, misses=len(texts) - hits)

        # The lock is not held across the provider call.
        if misses:
            vectors = await self._provider.embed_batch(misses)
            if len(vectors) != len(misses):
                raise EmbeddingProviderError(
                    f"Provider returned {len(vectors)} embeddings for {len(misses)} texts",
                    code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
                    details={"expected": len(misses), "got": len(vectors)},
                )
            async with self._lock:
                for text, vector in zip(misses, vectors):
                    self._entries[text] = vector
                    self._entries.move_to_end(text)
                    found[text] = vector
                while len(self._entries) > self._max_size:
                    self._entries.popitem(last=False)

        return [list(found[text]) for text in texts]
