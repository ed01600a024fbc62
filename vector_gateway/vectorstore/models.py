"""Vector store data models."""

import math
from enum import Enum
from typing import Any

import pydantic
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from vector_gateway.exceptions import ValidationError

PointId = str | int

JSON_SCALARS = (str, int, float, bool, type(None))

# Payload key holding the caller's identifier inside the index.
POINT_ID_PAYLOAD_KEY = "_point_id"


class Distance(str, Enum):
    """Distance metric of a collection."""

    COSINE = "cosine"
    DOT = "dot"
    EUCLIDEAN = "euclidean"

    @property
    def higher_is_better(self) -> bool:
        """Whether a larger score means a closer match."""
        return self is not Distance.EUCLIDEAN


class CollectionInfo(BaseModel):
    """Declared shape of a collection.

    Attributes:
        name: Collection name.
        dimension: Length every stored vector must have.
        distance: Similarity metric used for search.
    """

    name: str = Field(description="Collection name")
    dimension: int = Field(gt=0, description="Vector dimension")
    distance: Distance = Field(
        default=Distance.COSINE,
        description="Distance metric",
    )


class PointInput(BaseModel):
    """Caller-supplied unit of ingestion.

    Exactly one source of the vector is used: ``vector`` when present,
    otherwise ``text`` is embedded.

    Attributes:
        id: Collection-scoped identifier.
        text: Raw text to embed.
        vector: Precomputed vector.
        payload: Metadata stored with the point.
    """

    id: PointId = Field(description="Point identifier")
    text: str | None = Field(default=None, description="Text to embed")
    vector: list[float] | None = Field(
        default=None,
        description="Precomputed vector",
    )
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata payload",
    )

    # Run before pydantic coercion, which would turn True into 1.
    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, value: Any) -> PointId:
        return validate_point_id(value)

    @field_validator("vector", mode="before")
    @classmethod
    def _check_vector_types(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return None
        point_id = info.data.get("id")
        if not isinstance(value, (list, tuple)):
            raise ValidationError(
                f"Vector of point {point_id!r} must be a list of numbers",
                details={"id": point_id, "type": type(value).__name__},
            )
        for i, v in enumerate(value):
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise ValidationError(
                    f"Vector of point {point_id!r} has a non-numeric entry at index {i}",
                    details={"id": point_id, "index": i, "type": type(v).__name__},
                )
        return value

    @field_validator("payload", mode="before")
    @classmethod
    def _check_payload(cls, value: Any, info: ValidationInfo) -> dict[str, Any]:
        return validate_payload(info.data.get("id"), value)

    @property
    def needs_embedding(self) -> bool:
        """Whether this point has to go through the embedding provider."""
        return self.vector is None


class StoredPoint(BaseModel):
    """A point as persisted in the index.

    Attributes:
        id: Point identifier.
        vector: The embedding vector.
        payload: Metadata stored with the vector.
    """

    id: PointId = Field(description="Point identifier")
    vector: list[float] = Field(description="Embedding vector")
    payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata payload",
    )


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        id: Point identifier.
        score: Similarity score (distance for euclidean collections).
        payload: Stored metadata, present only when requested.
    """

    id: PointId = Field(description="Point identifier")
    score: float = Field(description="Similarity score")
    payload: dict[str, Any] | None = Field(
        default=None,
        description="Point metadata",
    )


class PointFailure(BaseModel):
    """A single point that could not be ingested."""

    id: PointId = Field(description="Offending point identifier")
    reason: str = Field(description="Human-readable failure reason")
    code: str = Field(description="Error code of the failure")


class BatchOutcome(BaseModel):
    """Result of a batched ingestion.

    Attributes:
        upserted: Number of points written to the index.
        failures: Points that were rejected, with reasons.
    """

    upserted: int = Field(default=0, description="Points written")
    failures: list[PointFailure] = Field(
        default_factory=list,
        description="Per-point failures",
    )

    @property
    def succeeded(self) -> int:
        return self.upserted

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


def validate_point_id(point_id: Any) -> PointId:
    """Check that ``point_id`` is a usable identifier.

    Raises:
        ValidationError: If the id is not a non-empty string or a
            non-negative integer.
    """
    if isinstance(point_id, bool):
        raise ValidationError(
            "Point id must be a string or integer, got bool",
            details={"id": point_id},
        )
    if isinstance(point_id, int):
        if point_id < 0:
            raise ValidationError(
                f"Point id must be non-negative: {point_id}",
                details={"id": point_id},
            )
        return point_id
    if isinstance(point_id, str):
        if not point_id.strip():
            raise ValidationError("Point id must not be empty", details={"id": point_id})
        return point_id
    raise ValidationError(
        f"Point id must be a string or integer, got {type(point_id).__name__}",
        details={"id": repr(point_id)},
    )


def validate_payload(point_id: PointId, payload: Any) -> dict[str, Any]:
    """Check that ``payload`` is a string-keyed map of JSON scalars.

    Raises:
        ValidationError: On a non-mapping payload, a non-string key or a
            nested value.
    """
    if not isinstance(payload, dict):
        raise ValidationError(
            f"Payload of point {point_id!r} must be a mapping",
            details={"id": point_id, "type": type(payload).__name__},
        )
    for key, value in payload.items():
        if not isinstance(key, str):
            raise ValidationError(
                f"Payload key of point {point_id!r} must be a string: {key!r}",
                details={"id": point_id, "key": repr(key)},
            )
        if key == POINT_ID_PAYLOAD_KEY:
            raise ValidationError(
                f"Payload key '{key}' is reserved",
                details={"id": point_id, "key": key},
            )
        if not isinstance(value, JSON_SCALARS):
            raise ValidationError(
                f"Payload value '{key}' of point {point_id!r} is not a JSON scalar",
                details={"id": point_id, "key": key, "type": type(value).__name__},
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError(
                f"Payload value '{key}' of point {point_id!r} is not finite",
                details={"id": point_id, "key": key},
            )
    return payload


def validate_vector(point_id: PointId | None, vector: list[float]) -> list[float]:
    """Check that ``vector`` is non-empty and finite."""
    if not vector:
        raise ValidationError(
            "Vector must not be empty",
            details={"id": point_id},
        )
    if not all(math.isfinite(v) for v in vector):
        raise ValidationError(
            "Vector contains non-finite values",
            details={"id": point_id},
        )
    return vector


def new_point(
    point_id: Any,
    text: Any = None,
    vector: Any = None,
    payload: Any = None,
) -> PointInput:
    """Build a PointInput from raw arguments.

    Raises:
        ValidationError: If any argument cannot be converted.
    """
    try:
        return PointInput(
            id=point_id,
            text=text,
            vector=vector,
            payload={} if payload is None else payload,
        )
    except pydantic.ValidationError as e:
        raise ValidationError(
            f"Invalid point {point_id!r}",
            details={
                "id": repr(point_id),
                "errors": e.errors(include_url=False, include_context=False),
            },
        ) from e


def _id_sort_key(point_id: PointId) -> tuple[int, int | str]:
    # Integers sort before strings so mixed-id collections stay deterministic.
    if isinstance(point_id, int):
        return (0, point_id)
    return (1, point_id)


def rank_results(
    results: list[SearchResult],
    distance: Distance = Distance.COSINE,
) -> list[SearchResult]:
    """Order results best first, breaking score ties by ascending id.

    Args:
        results: Unordered or index-ordered results.
        distance: Metric of the searched collection.

    Returns:
        New list in ranking order.
    """
    sign = -1.0 if distance.higher_is_better else 1.0
    return sorted(
        results,
        key=lambda r: (sign * r.score, _id_sort_key(r.id)),
    )
