"""Vector index module."""

from vector_gateway.vectorstore.filters import (
    AllOf,
    AnyOf,
    FieldIn,
    FieldMatch,
    FieldRange,
    FilterExpression,
    all_of,
    any_of,
    between,
    match,
    one_of,
)
from vector_gateway.vectorstore.memory import InMemoryVectorIndex
from vector_gateway.vectorstore.models import (
    BatchOutcome,
    CollectionInfo,
    Distance,
    PointFailure,
    PointId,
    PointInput,
    SearchResult,
    StoredPoint,
    rank_results,
)
from vector_gateway.vectorstore.service import QdrantIndexClient, VectorIndexClient

__all__ = [
    "AllOf",
    "AnyOf",
    "BatchOutcome",
    "CollectionInfo",
    "Distance",
    "FieldIn",
    "FieldMatch",
    "FieldRange",
    "FilterExpression",
    "InMemoryVectorIndex",
    "PointFailure",
    "PointId",
    "PointInput",
    "QdrantIndexClient",
    "SearchResult",
    "StoredPoint",
    "VectorIndexClient",
    "all_of",
    "any_of",
    "between",
    "match",
    "one_of",
    "rank_results",
]
