"""Prometheus metrics for the vector gateway.

Provides metrics instrumentation for:
- Embedding request latency and batch sizes
- Vector index operation latency
- Search result counts and top scores
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)

from vector_gateway.logging_config import get_logger

logger = get_logger(__name__)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Embedding batch size",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)

EMBEDDING_CACHE_LOOKUPS = Counter(
    "embedding_cache_lookups_total",
    "Embedding cache lookups",
    ["result"],  # "result" label values: hit, miss
)

# Vector Index Metrics
VECTOR_INDEX_OPERATION_DURATION = Histogram(
    "vector_index_operation_duration_seconds",
    "Vector index operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

VECTOR_INDEX_POINTS_UPSERTED = Counter(
    "vector_index_points_upserted_total",
    "Total points written to the vector index",
)

# Search Metrics
SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Number of results returned per search",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50, 100],
)

SEARCH_TOP_SCORE = Histogram(
    "search_top_score",
    "Top similarity score per search",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Embedding model name.
        duration: Request duration in seconds.
        batch_size: Number of texts in the batch.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_cache_lookups(hits: int, misses: int) -> None:
    """Track embedding cache hits and misses."""
    if hits:
        EMBEDDING_CACHE_LOOKUPS.labels(result="hit").inc(hits)
    if misses:
        EMBEDDING_CACHE_LOOKUPS.labels(result="miss").inc(misses)


def track_index_operation(
    operation: str,
    duration: float,
    success: bool = True,
    points: int = 0,
) -> None:
    """Track a vector index operation.

    Args:
        operation: Operation name (upsert, search, create_collection, ...).
        duration: Operation duration in seconds.
        success: Whether the operation succeeded.
        points: Points written, for upserts.
    """
    status = "success" if success else "error"

    VECTOR_INDEX_OPERATION_DURATION.labels(
        operation=operation, status=status
    ).observe(duration)
    if success and points:
        VECTOR_INDEX_POINTS_UPSERTED.inc(points)


def track_search_request(
    results_returned: int,
    top_score: float | None,
) -> None:
    """Track search request metrics.

    Args:
        results_returned: Number of results returned.
        top_score: Score of the best result, if any.
    """
    SEARCH_RESULTS_RETURNED.observe(results_returned)
    if top_score is not None and top_score > 0:
        SEARCH_TOP_SCORE.observe(top_score)
