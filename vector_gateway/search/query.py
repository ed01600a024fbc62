"""Immutable query description and its fluent builder."""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from vector_gateway.exceptions import ValidationError
from vector_gateway.vectorstore.filters import FilterExpression
from vector_gateway.vectorstore.models import SearchResult

if TYPE_CHECKING:
    from vector_gateway.search.engine import SearchEngine

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_HNSW_EF = 128


@dataclass(frozen=True)
class QuerySpec:
    """One similarity search, fully described.

    Exactly one of ``query_text`` / ``query_vector`` must be set when the
    search runs.

    Attributes:
        query_text: Text to embed and search with.
        query_vector: Precomputed query vector.
        limit: Maximum number of results.
        filter: Payload filter expression.
        hnsw_ef: Search breadth for approximate search.
        exact: Brute-force instead of approximate search.
        with_payload: Attach payloads to results.
        score_threshold: Drop results worse than this score.
    """

    query_text: str | None = None
    query_vector: tuple[float, ...] | None = None
    limit: int = DEFAULT_SEARCH_LIMIT
    filter: FilterExpression | None = None
    hnsw_ef: int | None = DEFAULT_HNSW_EF
    exact: bool = False
    with_payload: bool = False
    score_threshold: float | None = None


def _positive_int(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"{name} must be a positive integer, got {value!r}",
            details={name: value},
        )
    return value


class QueryBuilder:
    """Fluent builder for a search against one collection.

    Every setter returns a new builder; the original is left untouched.
    No I/O happens until ``search()`` is awaited:

        results = await (
            service.search_builder("docs")
            .query_text("vector databases")
            .filter(match("category", "tech"))
            .limit(5)
            .with_payload()
            .search()
        )
    """

    def __init__(
        self,
        engine: "SearchEngine",
        collection: str,
        spec: QuerySpec | None = None,
    ) -> None:
        self._engine = engine
        self._collection = collection
        self._spec = spec or QuerySpec()

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    @property
    def collection(self) -> str:
        return self._collection

    def _with(self, **changes: object) -> "QueryBuilder":
        return QueryBuilder(self._engine, self._collection, replace(self._spec, **changes))

    def query_text(self, text: str) -> "QueryBuilder":
        return self._with(query_text=text)

    def query_vector(self, vector: Sequence[float]) -> "QueryBuilder":
        try:
            values = tuple(float(v) for v in vector)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"query_vector must contain numbers: {e}") from e
        return self._with(query_vector=values)

    def limit(self, limit: int) -> "QueryBuilder":
        return self._with(limit=_positive_int("limit", limit))

    def filter(self, expression: FilterExpression | None) -> "QueryBuilder":
        return self._with(filter=expression)

    def hnsw_ef(self, ef: int) -> "QueryBuilder":
        """Set the search breadth; larger trades speed for recall."""
        return self._with(hnsw_ef=_positive_int("hnsw_ef", ef))

    tuning_param = hnsw_ef

    def exact(self, exact: bool = True) -> "QueryBuilder":
        return self._with(exact=exact)

    def with_payload(self, with_payload: bool = True) -> "QueryBuilder":
        return self._with(with_payload=with_payload)

    def score_threshold(self, threshold: float | None) -> "QueryBuilder":
        return self._with(score_threshold=threshold)

    async def search(self) -> list[SearchResult]:
        """Run the search.

        Raises:
            ValidationError: If neither or both of text and vector are set.
            MissingEmbeddingProviderError: If text is set without a provider.
        """
        return await self._engine.execute(self._collection, self._spec)

    def __repr__(self) -> str:
        return f"QueryBuilder(collection={self._collection!r}, spec={self._spec!r})"
