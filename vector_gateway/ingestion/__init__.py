"""Ingestion module."""

from vector_gateway.ingestion.pipeline import DEFAULT_TEXT_PAYLOAD_KEY, IngestionPipeline

__all__ = [
    "DEFAULT_TEXT_PAYLOAD_KEY",
    "IngestionPipeline",
]
