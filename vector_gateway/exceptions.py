"""Application exception hierarchy.

All custom exceptions inherit from VectorGatewayError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VG-1000"
    CONFIGURATION_ERROR = "VG-1001"
    VALIDATION_ERROR = "VG-1002"
    INVALID_HEADER = "VG-1003"

    # Embedding errors (2xxx)
    EMBEDDING_PROVIDER_ERROR = "VG-2000"
    EMBEDDING_RATE_LIMIT = "VG-2001"
    EMBEDDING_INVALID_RESPONSE = "VG-2002"
    MISSING_EMBEDDING_PROVIDER = "VG-2003"

    # Vector index errors (3xxx)
    VECTOR_INDEX_ERROR = "VG-3000"
    COLLECTION_NOT_FOUND = "VG-3001"
    COLLECTION_EXISTS = "VG-3002"
    DIMENSION_MISMATCH = "VG-3003"


class VectorGatewayError(Exception):
    """Base exception for all vector gateway errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorGatewayError):
    """Configuration or transport construction error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ValidationError(VectorGatewayError):
    """Malformed query or input, rejected before any network call."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class MissingEmbeddingProviderError(VectorGatewayError):
    """Text-based operation attempted without an embedding provider."""

    def __init__(
        self,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.operation = operation
        super().__init__(
            f"Operation '{operation}' requires an embedding provider",
            ErrorCode.MISSING_EMBEDDING_PROVIDER,
            {"operation": operation, **(details or {})},
        )


class DimensionMismatchError(VectorGatewayError):
    """Vector length disagrees with the collection's declared dimension.

    Attributes:
        expected: Collection dimension.
        got: Length of the offending vector.
        point_id: Identifier of the first offending point, or None for
            a query vector.
    """

    def __init__(
        self,
        expected: int,
        got: int,
        point_id: str | int | None = None,
        collection: str | None = None,
    ) -> None:
        self.expected = expected
        self.got = got
        self.point_id = point_id
        target = f"point {point_id!r}" if point_id is not None else "query vector"
        super().__init__(
            f"Dimension mismatch for {target}: expected {expected}, got {got}",
            ErrorCode.DIMENSION_MISMATCH,
            {
                "expected": expected,
                "got": got,
                "id": point_id,
                "collection": collection,
            },
        )


class EmbeddingProviderError(VectorGatewayError):
    """Embedding call failed (transport, quota or malformed response)."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_PROVIDER_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorIndexError(VectorGatewayError):
    """Vector index operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_INDEX_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
