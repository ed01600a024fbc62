"""Vector store façade.

``VectorStoreService`` owns one vector index client and, optionally, an
embedding provider. Without a provider it still serves every
vector-based operation; text-based operations then fail with
``MissingEmbeddingProviderError``.
"""

from collections.abc import Sequence
from types import TracebackType
from typing import Any

from vector_gateway.config import Settings, get_settings
from vector_gateway.embeddings.cache import CachedEmbeddingProvider
from vector_gateway.embeddings.service import EmbeddingProvider, HTTPEmbeddingProvider
from vector_gateway.exceptions import ValidationError
from vector_gateway.ingestion.pipeline import DEFAULT_TEXT_PAYLOAD_KEY, IngestionPipeline
from vector_gateway.logging_config import get_logger
from vector_gateway.search.engine import SearchEngine
from vector_gateway.search.query import QueryBuilder
from vector_gateway.vectorstore.filters import FilterExpression
from vector_gateway.vectorstore.models import (
    BatchOutcome,
    CollectionInfo,
    Distance,
    PointId,
    PointInput,
    SearchResult,
    StoredPoint,
    new_point,
)
from vector_gateway.vectorstore.service import QdrantIndexClient, VectorIndexClient

logger = get_logger(__name__)


class VectorStoreService:
    """Collection management, ingestion and search behind one object.

    Holds only connection handles; share one instance per process.
    """

    def __init__(
        self,
        index: VectorIndexClient,
        embedding_provider: EmbeddingProvider | None = None,
        settings: Settings | None = None,
        text_payload_key: str | None = DEFAULT_TEXT_PAYLOAD_KEY,
    ) -> None:
        """Initialize the service.

        Args:
            index: Vector index client.
            embedding_provider: Optional embedding provider.
            settings: Application settings (search defaults).
            text_payload_key: Payload key for the source text of embedded
                points, or None to not store it.
        """
        self._settings = settings or get_settings()
        self._index = index
        self._provider = embedding_provider
        self._pipeline = IngestionPipeline(index, embedding_provider, text_payload_key)
        self._engine = SearchEngine(index, embedding_provider, self._settings.search)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        with_embeddings: bool = True,
    ) -> "VectorStoreService":
        """Build a Qdrant-backed service from configuration.

        Raises:
            ConfigurationError: If transport configuration is invalid.
        """
        settings = settings or get_settings()
        provider: EmbeddingProvider | None = None
        if with_embeddings:
            provider = HTTPEmbeddingProvider(settings.embedding)
            if settings.embedding.cache_size > 0:
                provider = CachedEmbeddingProvider(provider, settings.embedding.cache_size)

        index = QdrantIndexClient(settings.qdrant)
        logger.info(
            "Vector store service configured",
            extra={
                "qdrant_url": settings.qdrant.url,
                "embedding_model": provider.model_name if provider else None,
            },
        )
        return cls(index, provider, settings)

    @property
    def has_embedding_provider(self) -> bool:
        return self._provider is not None

    @property
    def embedding_provider(self) -> EmbeddingProvider | None:
        return self._provider

    @property
    def index(self) -> VectorIndexClient:
        return self._index

    async def close(self) -> None:
        """Close the index client and the embedding provider."""
        await self._index.close()
        if self._provider is not None:
            await self._provider.close()

    async def __aenter__(self) -> "VectorStoreService":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # Collection management

    async def create_collection(
        self,
        name: str,
        dimension: int | None = None,
        distance: Distance = Distance.COSINE,
    ) -> CollectionInfo:
        """Create a collection.

        Args:
            name: Collection name.
            dimension: Vector dimension; defaults to the provider's.
            distance: Similarity metric.

        Raises:
            ValidationError: If no dimension is given and none is known.
            VectorIndexError: With COLLECTION_EXISTS if the name is taken.
        """
        known = self._provider.dimensions if self._provider is not None else None
        if dimension is None:
            if known is None:
                raise ValidationError(
                    "Collection dimension is required when the embedding "
                    "provider's dimension is unknown",
                    details={"collection": name},
                )
            dimension = known
        elif known is not None and dimension != known:
            logger.warning(
                f"Collection {name} dimension {dimension} differs from "
                f"embedding model dimension {known}; text ingestion will fail",
                extra={"collection": name},
            )
        return await self._index.create_collection(name, dimension, distance)

    async def list_collections(self) -> list[str]:
        return await self._index.list_collections()

    async def delete_collection(self, name: str) -> None:
        await self._index.delete_collection(name)

    async def collection_exists(self, name: str) -> bool:
        return await self._index.collection_exists(name)

    async def get_collection(self, name: str) -> CollectionInfo:
        return await self._index.get_collection(name)

    # Ingestion

    async def upsert_point(
        self,
        collection: str,
        point_id: PointId,
        text: str,
        payload: dict[str, Any] | None = None,
    ) -> BatchOutcome:
        """Embed ``text`` and upsert it under ``point_id``.

        Raises:
            ValidationError: If the id, text or payload is malformed.
            MissingEmbeddingProviderError: If no provider is configured.
        """
        point = new_point(point_id, text=text, payload=payload)
        return await self._pipeline.ingest_one(collection, point)

    async def upsert_points(
        self,
        collection: str,
        points: Sequence[PointInput],
    ) -> BatchOutcome:
        """Embed and upsert a batch, all or nothing."""
        return await self._pipeline.ingest(collection, points)

    async def upsert_points_best_effort(
        self,
        collection: str,
        points: Sequence[PointInput],
    ) -> BatchOutcome:
        """Upsert what can be upserted, reporting per-point failures."""
        return await self._pipeline.ingest_best_effort(collection, points)

    async def upsert_point_with_vector(
        self,
        collection: str,
        point_id: PointId,
        vector: list[float],
        payload: dict[str, Any] | None = None,
    ) -> BatchOutcome:
        """Upsert a point with a precomputed vector; no provider required."""
        return await self._pipeline.ingest_vector(collection, point_id, vector, payload)

    async def get_points(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> list[StoredPoint]:
        return await self._index.retrieve(collection, ids)

    async def delete_points(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> int:
        return await self._index.delete_points(collection, ids)

    async def count_points(self, collection: str) -> int:
        return await self._index.count(collection)

    # Search

    def search_builder(self, collection: str) -> QueryBuilder:
        """Start a fluent query against ``collection``."""
        return self._engine.builder(collection)

    async def search_points(
        self,
        collection: str,
        query: str,
        limit: int | None = None,
        filter: FilterExpression | None = None,
        with_payload: bool = True,
    ) -> list[SearchResult]:
        """Search with free text, embedded on the fly.

        Raises:
            MissingEmbeddingProviderError: If no provider is configured.
        """
        builder = self.search_builder(collection).query_text(query).filter(filter)
        if limit is not None:
            builder = builder.limit(limit)
        return await builder.with_payload(with_payload).search()

    async def search_points_with_vector(
        self,
        collection: str,
        vector: list[float],
        limit: int | None = None,
        filter: FilterExpression | None = None,
        with_payload: bool = True,
    ) -> list[SearchResult]:
        """Search with a precomputed vector; no provider required."""
        builder = self.search_builder(collection).query_vector(vector).filter(filter)
        if limit is not None:
            builder = builder.limit(limit)
        return await builder.with_payload(with_payload).search()

    async def health_check(self) -> bool:
        return await self._index.health_check()
