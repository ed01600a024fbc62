"""Embedding provider module."""

from vector_gateway.embeddings.cache import CachedEmbeddingProvider
from vector_gateway.embeddings.service import EmbeddingProvider, HTTPEmbeddingProvider

__all__ = [
    "CachedEmbeddingProvider",
    "EmbeddingProvider",
    "HTTPEmbeddingProvider",
]
