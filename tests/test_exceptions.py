"""Tests for application exceptions."""

from vector_gateway.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingProviderError,
    ErrorCode,
    MissingEmbeddingProviderError,
    ValidationError,
    VectorGatewayError,
    VectorIndexError,
)


class TestErrorCode:
    """Tests for error codes."""

    def test_error_code_format(self) -> None:
        """Error codes follow VG-XXXX format."""
        for code in ErrorCode:
            assert code.value.startswith("VG-")
            assert len(code.value) == 7

    def test_error_code_uniqueness(self) -> None:
        """All error codes are unique."""
        codes = [code.value for code in ErrorCode]
        assert len(codes) == len(set(codes))


class TestVectorGatewayError:
    """Tests for base exception."""

    def test_basic_exception(self) -> None:
        """Base exception stores message and code."""
        error = VectorGatewayError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}

    def test_to_dict(self) -> None:
        """Exception converts to a serializable dict."""
        error = VectorGatewayError(
            "Something went wrong",
            code=ErrorCode.INTERNAL_ERROR,
            details={"trace_id": "abc123"},
        )

        assert error.to_dict() == {
            "error": {
                "code": "VG-1000",
                "message": "Something went wrong",
                "details": {"trace_id": "abc123"},
            }
        }

    def test_str_representation(self) -> None:
        """Exception string is the message."""
        assert str(VectorGatewayError("Test error")) == "Test error"


class TestConfigurationError:
    """Tests for configuration exception."""

    def test_default_code(self) -> None:
        """ConfigurationError has correct default code."""
        error = ConfigurationError("Missing env var")
        assert error.code == ErrorCode.CONFIGURATION_ERROR
        assert isinstance(error, VectorGatewayError)

    def test_invalid_header_code(self) -> None:
        """ConfigurationError can indicate an invalid header."""
        error = ConfigurationError("bad header", code=ErrorCode.INVALID_HEADER)
        assert error.code == ErrorCode.INVALID_HEADER


class TestValidationError:
    """Tests for validation exception."""

    def test_default_code(self) -> None:
        """ValidationError has correct default code."""
        error = ValidationError("Invalid input")
        assert error.code == ErrorCode.VALIDATION_ERROR


class TestMissingEmbeddingProviderError:
    """Tests for missing provider exception."""

    def test_names_operation(self) -> None:
        """The failing operation is recorded."""
        error = MissingEmbeddingProviderError("upsert_point")
        assert error.code == ErrorCode.MISSING_EMBEDDING_PROVIDER
        assert error.operation == "upsert_point"
        assert "upsert_point" in error.message
        assert error.details["operation"] == "upsert_point"


class TestDimensionMismatchError:
    """Tests for dimension mismatch exception."""

    def test_structured_fields(self) -> None:
        """Expected, got and id are inspectable."""
        error = DimensionMismatchError(expected=3, got=2, point_id="p1", collection="docs")
        assert error.expected == 3
        assert error.got == 2
        assert error.point_id == "p1"
        assert error.code == ErrorCode.DIMENSION_MISMATCH
        assert error.details["collection"] == "docs"
        assert "'p1'" in error.message

    def test_query_vector_message(self) -> None:
        """Without an id the message names the query vector."""
        error = DimensionMismatchError(expected=3, got=4)
        assert error.point_id is None
        assert "query vector" in error.message


class TestEmbeddingProviderError:
    """Tests for embedding exception."""

    def test_default_code(self) -> None:
        """EmbeddingProviderError has correct default code."""
        error = EmbeddingProviderError("Service unavailable")
        assert error.code == ErrorCode.EMBEDDING_PROVIDER_ERROR

    def test_rate_limit_code(self) -> None:
        """EmbeddingProviderError can indicate rate limiting."""
        error = EmbeddingProviderError("slow down", code=ErrorCode.EMBEDDING_RATE_LIMIT)
        assert error.code == ErrorCode.EMBEDDING_RATE_LIMIT


class TestVectorIndexError:
    """Tests for vector index exception."""

    def test_default_code(self) -> None:
        """VectorIndexError has correct default code."""
        error = VectorIndexError("Connection failed")
        assert error.code == ErrorCode.VECTOR_INDEX_ERROR

    def test_custom_code(self) -> None:
        """VectorIndexError can have custom code."""
        error = VectorIndexError(
            "Collection not found",
            code=ErrorCode.COLLECTION_NOT_FOUND,
        )
        assert error.code == ErrorCode.COLLECTION_NOT_FOUND
