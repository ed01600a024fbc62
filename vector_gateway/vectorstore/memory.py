"""In-process vector index with brute-force search.

Implements the full VectorIndexClient contract without a server, for
local development and tests. ``exact`` and ``hnsw_ef`` are accepted and
ignored: every search is exact.
"""

from collections.abc import Sequence

import numpy as np

from vector_gateway.exceptions import ErrorCode, ValidationError, VectorIndexError
from vector_gateway.logging_config import get_logger
from vector_gateway.vectorstore.filters import FilterExpression
from vector_gateway.vectorstore.models import (
    CollectionInfo,
    Distance,
    PointId,
    SearchResult,
    StoredPoint,
    rank_results,
)
from vector_gateway.vectorstore.service import VectorIndexClient

logger = get_logger(__name__)


class _Collection:
    def __init__(self, info: CollectionInfo) -> None:
        self.info = info
        self.points: dict[PointId, StoredPoint] = {}


class InMemoryVectorIndex(VectorIndexClient):
    """Vector index held in process memory."""

    def __init__(self, max_upsert_batch: int | None = None) -> None:
        self._collections: dict[str, _Collection] = {}
        self.max_upsert_batch = max_upsert_batch

    def _get(self, name: str) -> _Collection:
        collection = self._collections.get(name)
        if collection is None:
            raise VectorIndexError(
                f"Collection not found: {name}",
                code=ErrorCode.COLLECTION_NOT_FOUND,
                details={"collection": name},
            )
        return collection

    async def create_collection(
        self,
        name: str,
        dimension: int,
        distance: Distance = Distance.COSINE,
    ) -> CollectionInfo:
        if dimension <= 0:
            raise ValidationError(
                f"Collection dimension must be positive: {dimension}",
                details={"collection": name, "dimension": dimension},
            )
        if name in self._collections:
            raise VectorIndexError(
                f"Collection already exists: {name}",
                code=ErrorCode.COLLECTION_EXISTS,
                details={"collection": name},
            )
        info = CollectionInfo(name=name, dimension=dimension, distance=distance)
        self._collections[name] = _Collection(info)
        logger.info(f"Created collection: {name}", extra={"dimension": dimension})
        return info

    async def list_collections(self) -> list[str]:
        return sorted(self._collections)

    async def delete_collection(self, name: str) -> None:
        self._get(name)
        del self._collections[name]
        logger.info(f"Deleted collection: {name}")

    async def collection_exists(self, name: str) -> bool:
        return name in self._collections

    async def get_collection(self, name: str) -> CollectionInfo:
        return self._get(name).info

    async def upsert(
        self,
        collection: str,
        points: Sequence[StoredPoint],
    ) -> int:
        if not points:
            return 0
        target = self._get(collection)
        self.check_dimensions(target.info, points)

        for point in points:
            target.points[point.id] = point.model_copy(deep=True)
        return len(points)

    def _scores(self, distance: Distance, matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
        if distance is Distance.COSINE:
            norms = np.linalg.norm(matrix, axis=1)
            norms[norms == 0] = 1.0
            q_norm = np.linalg.norm(query) or 1.0
            return (matrix @ query) / (norms * q_norm)
        if distance is Distance.DOT:
            return matrix @ query
        return np.linalg.norm(matrix - query[None, :], axis=1)

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
        target = self._get(collection)
        info = target.info
        self.check_query_vector(info, vector)

        candidates = [
            p
            for p in target.points.values()
            if filter is None or filter.matches(p.payload)
        ]
        if not candidates or limit <= 0:
            return []

        matrix = np.asarray([p.vector for p in candidates], dtype=np.float64)
        scores = self._scores(info.distance, matrix, np.asarray(vector, dtype=np.float64))

        results: list[SearchResult] = []
        for point, score in zip(candidates, scores.tolist()):
            if score_threshold is not None:
                if info.distance.higher_is_better and score < score_threshold:
                    continue
                if not info.distance.higher_is_better and score > score_threshold:
                    continue
            results.append(
                SearchResult(
                    id=point.id,
                    score=score,
                    payload=dict(point.payload) if include_payload else None,
                )
            )
        return rank_results(results, info.distance)[:limit]

    async def retrieve(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> list[StoredPoint]:
        target = self._get(collection)
        return [
            target.points[i].model_copy(deep=True)
            for i in ids
            if i in target.points
        ]

    async def delete_points(
        self,
        collection: str,
        ids: Sequence[PointId],
    ) -> int:
        target = self._get(collection)
        for i in ids:
            target.points.pop(i, None)
        return len(ids)

    async def count(self, collection: str) -> int:
        return len(self._get(collection).points)
