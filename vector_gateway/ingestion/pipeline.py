"""Ingestion pipeline: embed text-bearing points and upsert them."""

from collections.abc import Sequence
from typing import Any

from vector_gateway.embeddings.service import EmbeddingProvider
from vector_gateway.exceptions import (
    EmbeddingProviderError,
    ErrorCode,
    MissingEmbeddingProviderError,
    ValidationError,
    VectorGatewayError,
)
from vector_gateway.logging_config import get_logger
from vector_gateway.vectorstore.models import (
    BatchOutcome,
    PointFailure,
    PointId,
    PointInput,
    StoredPoint,
    new_point,
    validate_payload,
    validate_point_id,
    validate_vector,
)
from vector_gateway.vectorstore.service import VectorIndexClient

logger = get_logger(__name__)

DEFAULT_TEXT_PAYLOAD_KEY = "text"


class IngestionPipeline:
    """Turns caller points into stored points.

    Text-bearing points are embedded with a single ``embed_batch`` call per
    ingestion batch (one entry per distinct text); points that already
    carry a vector skip the provider entirely. Nothing is upserted until
    embedding of the whole batch has completed.
    """

    def __init__(
        self,
        index: VectorIndexClient,
        provider: EmbeddingProvider | None = None,
        text_payload_key: str | None = DEFAULT_TEXT_PAYLOAD_KEY,
    ) -> None:
        """Initialize the ingestion pipeline.

        Args:
            index: Vector index that receives the points.
            provider: Embedding provider; text points fail without one.
            text_payload_key: Payload key under which the source text is
                stored, or None to not store it.
        """
        self._index = index
        self._provider = provider
        self._text_payload_key = text_payload_key

    async def ingest(
        self,
        collection: str,
        points: Sequence[PointInput],
        operation: str = "upsert_points",
    ) -> BatchOutcome:
        """Embed and upsert a batch, all or nothing.

        Args:
            collection: Target collection.
            points: Points in caller order.
            operation: Name reported in MissingEmbeddingProviderError.

        Returns:
            BatchOutcome with the number of points written.

        Raises:
            ValidationError: If any point is malformed.
            MissingEmbeddingProviderError: If text needs embedding and no
                provider is configured.
            EmbeddingProviderError: If the embedding call fails.
            DimensionMismatchError: For the first point of the wrong length.
            VectorIndexError: If the index rejects the upsert.
        """
        if not points:
            return BatchOutcome()

        # Step 1: Validate every point before touching the network
        for point in points:
            self._validate(point)

        # Step 2: Embed the text-bearing partition in one call
        stored = await self._vectorize(collection, points, operation)

        # Step 3: Single upsert, chunked transparently by the index client
        upserted = await self._index.upsert(collection, stored)

        logger.info(
            f"Ingested {upserted} points",
            extra={
                "collection": collection,
                "embedded": sum(1 for p in points if p.needs_embedding),
            },
        )
        return BatchOutcome(upserted=upserted)

    async def ingest_one(
        self,
        collection: str,
        point: PointInput,
        operation: str = "upsert_point",
    ) -> BatchOutcome:
        """Ingest a single point through the batch path."""
        return await self.ingest(collection, [point], operation=operation)

    async def ingest_vector(
        self,
        collection: str,
        point_id: PointId,
        vector: list[float],
        payload: dict[str, Any] | None = None,
    ) -> BatchOutcome:
        """Upsert a point with a precomputed vector; never embeds."""
        point = new_point(point_id, vector=vector, payload=payload)
        return await self.ingest(collection, [point], operation="upsert_point_with_vector")

    async def ingest_best_effort(
        self,
        collection: str,
        points: Sequence[PointInput],
    ) -> BatchOutcome:
        """Ingest as much of a batch as possible.

        Malformed points, points whose vector does not fit the collection
        and points in a rejected upsert request are reported in
        ``failures`` instead of aborting the batch. A failed embedding call
        or an unknown collection still aborts, since no point can proceed.
        """
        failures: list[PointFailure] = []
        valid: list[PointInput] = []
        for point in points:
            try:
                self._validate(point)
            except ValidationError as e:
                failures.append(_failure(point.id, e))
                continue
            valid.append(point)

        if not valid:
            return BatchOutcome(failures=failures)

        info = await self._index.get_collection(collection)
        stored = await self._vectorize(collection, valid, "upsert_points_best_effort")

        fitting: list[StoredPoint] = []
        for point in stored:
            if len(point.vector) != info.dimension:
                failures.append(
                    PointFailure(
                        id=point.id,
                        reason=(
                            f"Dimension mismatch: expected {info.dimension}, "
                            f"got {len(point.vector)}"
                        ),
                        code=ErrorCode.DIMENSION_MISMATCH.value,
                    )
                )
                continue
            fitting.append(point)

        upserted = 0
        chunk_size = self._index.max_upsert_batch or max(1, len(fitting))
        for start in range(0, len(fitting), chunk_size):
            chunk = fitting[start : start + chunk_size]
            try:
                upserted += await self._index.upsert(collection, chunk)
            except VectorGatewayError as e:
                logger.warning(
                    f"Upsert of {len(chunk)} points failed: {e.message}",
                    extra={"collection": collection},
                )
                failures.extend(_failure(p.id, e) for p in chunk)

        logger.info(
            f"Ingested {upserted} points, {len(failures)} failed",
            extra={"collection": collection},
        )
        return BatchOutcome(upserted=upserted, failures=failures)

    def _validate(self, point: PointInput) -> None:
        validate_point_id(point.id)
        validate_payload(point.id, point.payload)
        if point.vector is not None:
            validate_vector(point.id, point.vector)
        elif point.text is None or not point.text.strip():
            raise ValidationError(
                f"Point {point.id!r} has neither text nor vector",
                details={"id": point.id},
            )

    async def _vectorize(
        self,
        collection: str,
        points: Sequence[PointInput],
        operation: str,
    ) -> list[StoredPoint]:
        """Resolve every point to a vector, preserving input order."""
        pending = [p for p in points if p.needs_embedding]
        vectors_by_text: dict[str, list[float]] = {}

        if pending:
            if self._provider is None:
                raise MissingEmbeddingProviderError(
                    operation,
                    details={"collection": collection, "points": len(pending)},
                )

            unique_texts = list(dict.fromkeys(p.text for p in pending if p.text))
            try:
                vectors = await self._provider.embed_batch(unique_texts)
            except EmbeddingProviderError as e:
                e.details.update(
                    {"collection": collection, "batch_size": len(points)}
                )
                raise

            if len(vectors) != len(unique_texts):
                raise EmbeddingProviderError(
                    f"Provider returned {len(vectors)} embeddings "
                    f"for {len(unique_texts)} texts",
                    code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
                    details={"collection": collection, "batch_size": len(points)},
                )
            vectors_by_text = dict(zip(unique_texts, vectors))

        return [
            StoredPoint(
                id=p.id,
                vector=p.vector if p.vector is not None else vectors_by_text[p.text or ""],
                payload=self._payload_for(p),
            )
            for p in points
        ]

    def _payload_for(self, point: PointInput) -> dict[str, Any]:
        payload = dict(point.payload)
        key = self._text_payload_key
        if key and point.text is not None and key not in payload:
            payload[key] = point.text
        return payload


def _failure(point_id: PointId, error: VectorGatewayError) -> PointFailure:
    return PointFailure(id=point_id, reason=error.message, code=error.code.value)
