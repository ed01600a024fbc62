"""Vector store gateway: embeddings, ingestion and similarity search."""

from vector_gateway.embeddings import (
    CachedEmbeddingProvider,
    EmbeddingProvider,
    HTTPEmbeddingProvider,
)
from vector_gateway.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingProviderError,
    ErrorCode,
    MissingEmbeddingProviderError,
    ValidationError,
    VectorGatewayError,
    VectorIndexError,
)
from vector_gateway.search import QueryBuilder, QuerySpec, SearchEngine
from vector_gateway.service import VectorStoreService
from vector_gateway.vectorstore import (
    BatchOutcome,
    CollectionInfo,
    Distance,
    InMemoryVectorIndex,
    PointInput,
    QdrantIndexClient,
    SearchResult,
    StoredPoint,
    VectorIndexClient,
)

__all__ = [
    "BatchOutcome",
    "CachedEmbeddingProvider",
    "CollectionInfo",
    "ConfigurationError",
    "DimensionMismatchError",
    "Distance",
    "EmbeddingProvider",
    "EmbeddingProviderError",
    "ErrorCode",
    "HTTPEmbeddingProvider",
    "InMemoryVectorIndex",
    "MissingEmbeddingProviderError",
    "PointInput",
    "QdrantIndexClient",
    "QueryBuilder",
    "QuerySpec",
    "SearchEngine",
    "SearchResult",
    "StoredPoint",
    "ValidationError",
    "VectorGatewayError",
    "VectorIndexClient",
    "VectorIndexError",
    "VectorStoreService",
]
