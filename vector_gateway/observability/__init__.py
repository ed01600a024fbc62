"""Observability module for metrics and monitoring."""

from vector_gateway.observability.metrics import (
    get_metrics,
    get_metrics_content_type,
    track_cache_lookups,
    track_embedding_request,
    track_index_operation,
    track_search_request,
)

__all__ = [
    "get_metrics",
    "get_metrics_content_type",
    "track_cache_lookups",
    "track_embedding_request",
    "track_index_operation",
    "track_search_request",
]
