"""Search module."""

from vector_gateway.search.engine import SearchEngine
from vector_gateway.search.query import (
    DEFAULT_HNSW_EF,
    DEFAULT_SEARCH_LIMIT,
    QueryBuilder,
    QuerySpec,
)

__all__ = [
    "DEFAULT_HNSW_EF",
    "DEFAULT_SEARCH_LIMIT",
    "QueryBuilder",
    "QuerySpec",
    "SearchEngine",
]
