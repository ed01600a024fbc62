"""Search engine: resolves a QuerySpec into ranked results."""

import math

from vector_gateway.config import SearchSettings, get_settings
from vector_gateway.embeddings.service import EmbeddingProvider
from vector_gateway.exceptions import MissingEmbeddingProviderError, ValidationError
from vector_gateway.logging_config import get_logger
from vector_gateway.observability.metrics import track_search_request
from vector_gateway.search.query import QueryBuilder, QuerySpec
from vector_gateway.vectorstore.models import SearchResult, rank_results
from vector_gateway.vectorstore.service import VectorIndexClient

logger = get_logger(__name__)


class SearchEngine:
    """Runs similarity searches against a vector index.

    Text queries are embedded with one ``embed`` call; vector queries go
    straight to the index.
    """

    def __init__(
        self,
        index: VectorIndexClient,
        provider: EmbeddingProvider | None = None,
        settings: SearchSettings | None = None,
    ) -> None:
        """Initialize the search engine.

        Args:
            index: Vector index to search.
            provider: Embedding provider for text queries.
            settings: Search defaults.
        """
        self._index = index
        self._provider = provider
        self._settings = settings or get_settings().search

    def default_spec(self) -> QuerySpec:
        """A QuerySpec carrying the configured defaults."""
        return QuerySpec(
            limit=self._settings.default_limit,
            hnsw_ef=self._settings.default_hnsw_ef,
            exact=self._settings.default_exact,
        )

    def builder(self, collection: str) -> QueryBuilder:
        """Start a query against ``collection``."""
        return QueryBuilder(self, collection, self.default_spec())

    @staticmethod
    def validate(spec: QuerySpec) -> None:
        """Reject a spec that cannot run.

        Raises:
            ValidationError: On a missing or ambiguous query, or bad limits.
        """
        has_text = spec.query_text is not None
        has_vector = spec.query_vector is not None
        if has_text == has_vector:
            raise ValidationError(
                "Exactly one of query_text or query_vector must be set",
                details={"query_text": has_text, "query_vector": has_vector},
            )
        if has_text and not spec.query_text.strip():  # type: ignore[union-attr]
            raise ValidationError("query_text must not be empty")
        if has_vector:
            if not spec.query_vector:
                raise ValidationError("query_vector must not be empty")
            if not all(math.isfinite(v) for v in spec.query_vector):  # type: ignore[union-attr]
                raise ValidationError("query_vector contains non-finite values")
        if isinstance(spec.limit, bool) or not isinstance(spec.limit, int) or spec.limit <= 0:
            raise ValidationError(
                f"limit must be a positive integer, got {spec.limit!r}",
                details={"limit": spec.limit},
            )
        if spec.hnsw_ef is not None and spec.hnsw_ef <= 0:
            raise ValidationError(
                f"hnsw_ef must be positive, got {spec.hnsw_ef}",
                details={"hnsw_ef": spec.hnsw_ef},
            )

    async def execute(self, collection: str, spec: QuerySpec) -> list[SearchResult]:
        """Run ``spec`` against ``collection``.

        Returns:
            At most ``spec.limit`` results, best first, ties by ascending id.
            Ties among more than two results straddling the cut-off are
            resolved only among those the index returned.

        Raises:
            ValidationError: If the spec is invalid (before any I/O).
            MissingEmbeddingProviderError: For text queries without a provider.
            EmbeddingProviderError: If embedding the query fails.
            DimensionMismatchError: If the query vector has the wrong length.
            VectorIndexError: If the index search fails.
        """
        # Step 1: Validate before any network call
        self.validate(spec)
        if spec.query_text is not None and self._provider is None:
            raise MissingEmbeddingProviderError(
                "search_points",
                details={"collection": collection},
            )

        info = await self._index.get_collection(collection)

        # Step 2: Resolve the query vector
        if spec.query_text is not None:
            vector = await self._provider.embed(spec.query_text)  # type: ignore[union-attr]
        else:
            vector = list(spec.query_vector)  # type: ignore[arg-type]

        # Step 3: Delegate to the index, one extra result so a score tie at
        # the cut-off is resolved by id rather than by index order
        results = await self._index.search(
            collection,
            vector,
            limit=spec.limit + 1,
            filter=spec.filter,
            exact=spec.exact,
            hnsw_ef=spec.hnsw_ef,
            include_payload=spec.with_payload,
            score_threshold=spec.score_threshold,
        )

        # Step 4: Deterministic ordering regardless of index behavior
        ranked = rank_results(results, info.distance)[: spec.limit]

        track_search_request(len(ranked), ranked[0].score if ranked else None)
        logger.debug(
            f"Search returned {len(ranked)} results",
            extra={
                "collection": collection,
                "limit": spec.limit,
                "text_query": spec.query_text is not None,
            },
        )
        return ranked
