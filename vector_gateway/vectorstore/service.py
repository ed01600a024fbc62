"""Vector index client interface and Qdrant implementation."""

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import UnexpectedResponse

from vector_gateway.config import QdrantSettings, get_settings
from vector_gateway.exceptions import (
    DimensionMismatchError,
    ErrorCode,
    ValidationError,
    VectorGatewayError,
    VectorIndexError,
)
from vector_gateway.logging_config import get_logger
from vector_gateway.observability.metrics import track_index_operation
from vector_gateway.vectorstore.filters import FilterExpression, to_qdrant_filter
from vector_gateway.vectorstore.models import (
    POINT_ID_PAYLOAD_KEY,
    CollectionInfo,
    Distance,
    PointId,
    SearchResult,
    StoredPoint,
)

logger = get_logger(__name__)


class VectorIndexClient(ABC):
    """Abstract base class for vector index clients.

    Addresses points by precomputed vectors only; knows nothing about
    embeddings.
    """

    #: Maximum points per upsert request, or None when unbounded.
    max_upsert_batch: int | None = None

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        dimension: int,
        distance: Distance = Distance.COSINE,
    ) -> CollectionInfo:
        """Create a new collection.

        Args:
            name: Collection name.
            dimension: Vector dimension.
            distance: Similarity metric.

        Returns:
            The created collection's info.

        Raises:
            VectorIndexError: With COLLECTION_EXISTS if the name is taken.
        """
        ...

    @abstractmethod
    async def list_collections(self) -> list[str]:
        """List collection names in ascending order."""
        ...

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        """Delete a collection.

        Raises:
            VectorIndexError: With COLLECTION_NOT_FOUND if absent.
        """
        ...

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Check if a collection exists."""
        ...

    @abstractmethod
    async def get_collection(self, name: str) -> CollectionInfo:
        """Get the declared dimension and metric of a collection.

        Raises:
            VectorIndexError: With COLLECTION_NOT_FOUND if absent.
        """
        ...

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        points: Sequence[StoredPoint],
    ) -> int:
        """Insert or replace points.

        Every vector is checked against the collection dimension before
        anything is written.

        Args:
            collection: Collection name.
            points: Points to upsert, in caller order.

        Returns:
            Number of points upserted.

        Raises:
            DimensionMismatchError: For the first point of the wrong length.
            VectorIndexError: If the index rejects the request.
        """
        ...

    @abstractmethod
    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 10,
        filter: FilterExpression | None = None,
        exact: bool = False,
        hnsw_ef: int | None = None,
        include_payload: bool = True,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors.

        Args:
            collection: Collection name.
            vector: Query vector.
            limit: Maximum results to return.
            filter: Optional payload filter expression.
            exact: Brute-force instead of approximate search.
            hnsw_ef: Search breadth for approximate search.
            include_payload: Attach payloads to results.
            score_threshold: Drop results worse than this score.

        Returns:
            List of search results.

        Raises:
            DimensionMismatchError: If the query vector has the wrong length.
            VectorIndexError: If search fails.
        """
        ...

    @abstractmethod
    async def retrieve(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> list[StoredPoint]:
        """Fetch stored points by id; missing ids are skipped."""
        ...

    @abstractmethod
    async def delete_points(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> int:
        """Delete points by id.

        Returns:
            Number of ids submitted for deletion.
        """
        ...

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Return the number of points in a collection."""
        ...

    async def health_check(self) -> bool:
        """Return True if the index answers requests."""
        try:
            await self.list_collections()
        except VectorGatewayError:
            return False
        return True

    async def close(self) -> None:
        """Release transport resources."""
        return None

    @staticmethod
    def check_dimensions(
        info: CollectionInfo,
        points: Sequence[StoredPoint],
    ) -> None:
        """Raise for the first point whose vector does not fit ``info``."""
        for point in points:
            if len(point.vector) != info.dimension:
                raise DimensionMismatchError(
                    expected=info.dimension,
                    got=len(point.vector),
                    point_id=point.id,
                    collection=info.name,
                )

    @staticmethod
    def check_query_vector(info: CollectionInfo, vector: list[float]) -> None:
        """Raise if a query vector does not fit ``info``."""
        if len(vector) != info.dimension:
            raise DimensionMismatchError(
                expected=info.dimension,
                got=len(vector),
                collection=info.name,
            )


@contextmanager
def _tracked(operation: str, points: int = 0) -> Iterator[None]:
    """Record duration and outcome of an index operation."""
    start = time.perf_counter()
    try:
        yield
    except BaseException:
        track_index_operation(operation, time.perf_counter() - start, success=False)
        raise
    track_index_operation(operation, time.perf_counter() - start, points=points)


_DISTANCE_TO_QDRANT = {
    Distance.COSINE: models.Distance.COSINE,
    Distance.DOT: models.Distance.DOT,
    Distance.EUCLIDEAN: models.Distance.EUCLID,
}
_DISTANCE_FROM_QDRANT = {v: k for k, v in _DISTANCE_TO_QDRANT.items()}

# Namespace for mapping arbitrary string ids onto Qdrant's UUID ids.
_POINT_ID_NAMESPACE = uuid.UUID("6f1c1c52-8a0e-4b8e-9d5f-3c2a7e9b4d10")


def to_qdrant_id(point_id: PointId) -> int | str:
    """Map a caller id onto an id Qdrant accepts (uint or UUID)."""
    if isinstance(point_id, int):
        return point_id
    # Non-canonical UUID spellings are hashed like any other string.
    try:
        if str(uuid.UUID(point_id)) == point_id:
            return point_id
    except ValueError:
        pass
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, point_id))


def _caller_id(qdrant_id: int | str, payload: dict[str, Any]) -> PointId:
    original = payload.pop(POINT_ID_PAYLOAD_KEY, None)
    if isinstance(original, (str, int)) and not isinstance(original, bool):
        return original
    return qdrant_id


class QdrantIndexClient(VectorIndexClient):
    """Qdrant vector index client."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant index client.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._collections: dict[str, CollectionInfo] = {}
        self.max_upsert_batch = self._settings.upsert_batch_size

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    def _wrap(self, e: Exception, action: str, collection: str | None) -> VectorIndexError:
        """Translate a transport exception into a VectorIndexError."""
        code = ErrorCode.VECTOR_INDEX_ERROR
        if isinstance(e, UnexpectedResponse) and e.status_code == 404:
            code = ErrorCode.COLLECTION_NOT_FOUND
            if collection is not None:
                self._collections.pop(collection, None)
        logger.error(
            f"Failed to {action}: {e}",
            extra={"collection": collection},
        )
        return VectorIndexError(
            f"Failed to {action}: {e}",
            code=code,
            details={"collection": collection, "error": str(e)},
        )

    async def create_collection(
        self,
        name: str,
        dimension: int,
        distance: Distance = Distance.COSINE,
    ) -> CollectionInfo:
        """Create a new Qdrant collection."""
        if dimension <= 0:
            raise ValidationError(
                f"Collection dimension must be positive: {dimension}",
                details={"collection": name, "dimension": dimension},
            )
        client = await self._get_client()

        with _tracked("create_collection"):
            try:
                if await client.collection_exists(name):
                    raise VectorIndexError(
                        f"Collection already exists: {name}",
                        code=ErrorCode.COLLECTION_EXISTS,
                        details={"collection": name},
                    )

                await client.create_collection(
                    collection_name=name,
                    vectors_config=models.VectorParams(
                        size=dimension,
                        distance=_DISTANCE_TO_QDRANT[distance],
                    ),
                )
            except VectorGatewayError:
                raise
            except Exception as e:
                raise self._wrap(e, "create collection", name) from e

        info = CollectionInfo(name=name, dimension=dimension, distance=distance)
        self._collections[name] = info
        logger.info(
            f"Created collection: {name}",
            extra={"dimension": dimension, "distance": distance.value},
        )
        return info

    async def list_collections(self) -> list[str]:
        """List Qdrant collection names."""
        client = await self._get_client()

        with _tracked("list_collections"):
            try:
                response = await client.get_collections()
            except Exception as e:
                raise self._wrap(e, "list collections", None) from e

        return sorted(c.name for c in response.collections)

    async def delete_collection(self, name: str) -> None:
        """Delete a Qdrant collection."""
        client = await self._get_client()

        with _tracked("delete_collection"):
            try:
                if not await client.collection_exists(name):
                    raise VectorIndexError(
                        f"Collection not found: {name}",
                        code=ErrorCode.COLLECTION_NOT_FOUND,
                        details={"collection": name},
                    )

                await client.delete_collection(name)
            except VectorGatewayError:
                raise
            except Exception as e:
                raise self._wrap(e, "delete collection", name) from e
            finally:
                self._collections.pop(name, None)

        logger.info(f"Deleted collection: {name}")

    async def collection_exists(self, name: str) -> bool:
        """Check if collection exists."""
        client = await self._get_client()
        try:
            return await client.collection_exists(name)
        except Exception as e:
            raise self._wrap(e, "check collection", name) from e

    async def get_collection(self, name: str) -> CollectionInfo:
        """Get collection info, cached after the first lookup."""
        cached = self._collections.get(name)
        if cached is not None:
            return cached

        client = await self._get_client()
        with _tracked("get_collection"):
            try:
                response = await client.get_collection(name)
            except Exception as e:
                raise self._wrap(e, "get collection", name) from e

        vectors = response.config.params.vectors
        if not isinstance(vectors, models.VectorParams):
            raise VectorIndexError(
                f"Collection uses named vectors, which are not supported: {name}",
                details={"collection": name},
            )
        distance = _DISTANCE_FROM_QDRANT.get(vectors.distance)
        if distance is None:
            raise VectorIndexError(
                f"Unsupported distance metric {vectors.distance} in collection {name}",
                details={"collection": name, "distance": str(vectors.distance)},
            )

        info = CollectionInfo(name=name, dimension=vectors.size, distance=distance)
        self._collections[name] = info
        return info

    def _to_point_struct(self, point: StoredPoint) -> models.PointStruct:
        return models.PointStruct(
            id=to_qdrant_id(point.id),
            vector=point.vector,
            payload={**point.payload, POINT_ID_PAYLOAD_KEY: point.id},
        )

    async def upsert(
        self,
        collection: str,
        points: Sequence[StoredPoint],
    ) -> int:
        """Upsert points into a collection, chunked by request size."""
        if not points:
            return 0

        info = await self.get_collection(collection)
        self.check_dimensions(info, points)

        client = await self._get_client()
        batch_size = self.max_upsert_batch or len(points)
        written = 0

        for start in range(0, len(points), batch_size):
            chunk = points[start : start + batch_size]
            with _tracked("upsert", points=len(chunk)):
                try:
                    await client.upsert(
                        collection_name=collection,
                        points=[self._to_point_struct(p) for p in chunk],
                        wait=True,
                    )
                except Exception as e:
                    error = self._wrap(e, "upsert points", collection)
                    error.details["upserted"] = written
                    error.details["failed_ids"] = [p.id for p in points[start:]]
                    raise error from e
            written += len(chunk)

        logger.debug(
            f"Upserted {written} points",
            extra={"collection": collection},
        )
        return written

    async def search(
        self,
        collection: str,
        vector: list[float],
        limit: int = 10,
        filter: FilterExpression | None = None,
        exact: bool = False,
        hnsw_ef: int | None = None,
        include_payload: bool = True,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Search for similar vectors."""
        info = await self.get_collection(collection)
        self.check_query_vector(info, vector)

        client = await self._get_client()

        # The caller's id always travels in the payload.
        with_payload: bool | models.PayloadSelectorInclude = True
        if not include_payload:
            with_payload = models.PayloadSelectorInclude(include=[POINT_ID_PAYLOAD_KEY])

        with _tracked("search"):
            try:
                response = await client.query_points(
                    collection_name=collection,
                    query=vector,
                    limit=limit,
                    query_filter=to_qdrant_filter(filter),
                    search_params=models.SearchParams(hnsw_ef=hnsw_ef, exact=exact),
                    with_payload=with_payload,
                    score_threshold=score_threshold,
                )
            except Exception as e:
                raise self._wrap(e, "search", collection) from e

        results: list[SearchResult] = []
        for point in response.points:
            payload = dict(point.payload) if point.payload else {}
            point_id = _caller_id(point.id, payload)
            results.append(
                SearchResult(
                    id=point_id,
                    score=point.score if point.score is not None else 0.0,
                    payload=payload if include_payload else None,
                )
            )
        return results

    async def retrieve(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> list[StoredPoint]:
        """Fetch points by id."""
        if not ids:
            return []

        client = await self._get_client()
        with _tracked("retrieve"):
            try:
                records = await client.retrieve(
                    collection_name=collection,
                    ids=[to_qdrant_id(i) for i in ids],
                    with_payload=True,
                    with_vectors=True,
                )
            except Exception as e:
                raise self._wrap(e, "retrieve points", collection) from e

        points: list[StoredPoint] = []
        for record in records:
            payload = dict(record.payload) if record.payload else {}
            vector = record.vector if isinstance(record.vector, list) else []
            points.append(
                StoredPoint(
                    id=_caller_id(record.id, payload),
                    vector=vector,
                    payload=payload,
                )
            )
        return points

    async def delete_points(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> int:
        """Delete points by id."""
        if not ids:
            return 0

        client = await self._get_client()
        with _tracked("delete_points"):
            try:
                await client.delete(
                    collection_name=collection,
                    points_selector=models.PointIdsList(
                        points=[to_qdrant_id(i) for i in ids]
                    ),
                    wait=True,
                )
            except Exception as e:
                raise self._wrap(e, "delete points", collection) from e

        logger.debug(
            f"Deleted {len(ids)} points",
            extra={"collection": collection},
        )
        return len(ids)

    async def count(self, collection: str) -> int:
        """Count points in a collection."""
        client = await self._get_client()
        try:
            result = await client.count(collection_name=collection, exact=True)
        except Exception as e:
            raise self._wrap(e, "count points", collection) from e
        return result.count
