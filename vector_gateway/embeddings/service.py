"""Embedding provider interface and HTTP implementation."""

import asyncio
import random
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from vector_gateway.config import EmbeddingSettings, get_settings
from vector_gateway.exceptions import (
    ConfigurationError,
    EmbeddingProviderError,
    ErrorCode,
    ValidationError,
)
from vector_gateway.logging_config import get_logger
from vector_gateway.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers.

    Turns text into fixed-dimension vectors. ``embed_batch`` returns one
    vector per input text, in input order, or fails as a whole.
    """

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate the embedding of a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector.

        Raises:
            EmbeddingProviderError: If embedding fails.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per text, same order and length as ``texts``.

        Raises:
            EmbeddingProviderError: If any part of the batch fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int | None:
        """Get the embedding dimensions, or None when not yet known."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None


def _check_header(name: str, value: str) -> str:
    """Reject header values that cannot be sent on the wire."""
    if "\r" in value or "\n" in value or not value.isascii() or not value.isprintable():
        raise ConfigurationError(
            f"Invalid value for header {name}",
            code=ErrorCode.INVALID_HEADER,
            details={"header": name},
        )
    return value


class HTTPEmbeddingProvider(EmbeddingProvider):
    """Embedding provider using an HTTP API.

    Compatible with OpenAI-style embedding APIs (OpenAI, OpenRouter, vLLM)
    and text-embeddings-inference (TEI) servers.

    Rate limits, server errors and transport errors are retried a bounded
    number of times with exponential backoff and jitter; other client
    errors and malformed responses fail immediately.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "BAAI/bge-large-en-v1.5": 1024,
        "BAAI/bge-base-en-v1.5": 768,
        "BAAI/bge-small-en-v1.5": 384,
        "text-embedding-ada-002": 1536,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "openai/text-embedding-3-small": 1536,
        "openai/text-embedding-3-large": 3072,
    }

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding provider.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.

        Raises:
            ConfigurationError: If a configured header value is invalid.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._dimensions: int | None = None
        self._headers = self._build_headers()

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._settings.api_key:
            token = self._settings.api_key.get_secret_value()
            headers["Authorization"] = _check_header("Authorization", f"Bearer {token}")
        if self._settings.site_url:
            headers["HTTP-Referer"] = _check_header("HTTP-Referer", self._settings.site_url)
        if self._settings.site_name:
            headers["X-Title"] = _check_header("X-Title", self._settings.site_name)
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int | None:
        """Get embedding dimensions."""
        if self._settings.dimensions is not None:
            return self._settings.dimensions
        if self._dimensions is not None:
            return self._dimensions
        return self.MODEL_DIMENSIONS.get(self._settings.model)

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts.

        Texts are sent in requests of at most ``batch_size`` items; the
        concatenated result keeps input order.

        Raises:
            ValidationError: If a text is empty.
            EmbeddingProviderError: If any request fails.
        """
        if not texts:
            return []

        for i, text in enumerate(texts):
            if not isinstance(text, str) or not text.strip():
                raise ValidationError(
                    f"Text at index {i} cannot be empty",
                    details={"index": i},
                )

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"

        all_vectors: list[list[float]] = []
        batch_size = max(1, self._settings.batch_size)

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            start = time.perf_counter()
            try:
                vectors = await self._request_with_retry(client, url, batch)
            except EmbeddingProviderError:
                track_embedding_request(
                    self.model_name, time.perf_counter() - start, len(batch), success=False
                )
                raise
            track_embedding_request(self.model_name, time.perf_counter() - start, len(batch))
            all_vectors.extend(vectors)

        return all_vectors

    def _backoff_delay(self, attempt: int, retry_after: str | None = None) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        if retry_after is not None:
            try:
                return min(float(retry_after), self._settings.retry_max_delay)
            except (TypeError, ValueError):
                pass
        delay = self._settings.retry_base_delay * (2**attempt)
        delay *= 0.5 + random.random()  # noqa: S311
        return min(delay, self._settings.retry_max_delay)

    async def _request_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
    ) -> list[list[float]]:
        """Make an embedding request, retrying transient failures."""
        max_retries = max(0, self._settings.max_retries)

        for attempt in range(max_retries + 1):
            retry_after: str | None = None
            try:
                return await self._request(client, url, texts)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                retryable = status == 429 or status >= 500
                if status == 429:
                    retry_after = e.response.headers.get("Retry-After")
                    code = ErrorCode.EMBEDDING_RATE_LIMIT
                    message = "Embedding provider rate limit exceeded"
                else:
                    code = ErrorCode.EMBEDDING_PROVIDER_ERROR
                    message = f"Embedding provider returned {status}"
                error = EmbeddingProviderError(
                    message,
                    code=code,
                    details={"status_code": status, "attempts": attempt + 1},
                )
                cause: Exception = e
            except httpx.RequestError as e:
                retryable = True
                error = EmbeddingProviderError(
                    f"Failed to connect to embedding provider: {e}",
                    details={"url": url, "attempts": attempt + 1},
                )
                cause = e

            if not retryable or attempt == max_retries:
                logger.error(
                    error.message,
                    extra={"url": url, "attempts": attempt + 1, "batch_size": len(texts)},
                )
                raise error from cause

            delay = self._backoff_delay(attempt, retry_after)
            logger.warning(
                f"{error.message}; retrying in {delay:.2f}s",
                extra={"attempt": attempt + 1, "max_retries": max_retries},
            )
            await asyncio.sleep(delay)

        raise AssertionError("unreachable")

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
    ) -> list[list[float]]:
        """Make one embedding request for a batch.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
            httpx.RequestError: On a transport failure.
            EmbeddingProviderError: If the response is malformed.
        """
        payload = {
            "input": texts,
            "model": self._settings.model,
        }

        response = await client.post(url, json=payload, headers=self._headers)
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise self._invalid_response(f"body is not JSON: {e}") from e

        return self._parse_embeddings(data, len(texts))

    def _parse_embeddings(self, data: Any, expected: int) -> list[list[float]]:
        """Extract vectors from an OpenAI-style response body."""
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise self._invalid_response("missing 'data' list")
        if len(items) != expected:
            raise self._invalid_response(
                f"expected {expected} embeddings, got {len(items)}"
            )

        # Providers may return items out of order; "index" is authoritative.
        if all(isinstance(item, dict) and isinstance(item.get("index"), int) for item in items):
            items = sorted(items, key=lambda item: item["index"])
            if [item["index"] for item in items] != list(range(expected)):
                raise self._invalid_response("embedding indices do not cover the batch")

        vectors: list[list[float]] = []
        for i, item in enumerate(items):
            embedding = item.get("embedding") if isinstance(item, dict) else None
            if (
                not isinstance(embedding, list)
                or not embedding
                or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding)
            ):
                raise self._invalid_response(f"item {i} has no numeric embedding")
            vectors.append([float(v) for v in embedding])

        width = len(vectors[0])
        if any(len(v) != width for v in vectors):
            raise self._invalid_response("embeddings have inconsistent dimensions")

        if self._dimensions is None:
            self._dimensions = width

        return vectors

    def _invalid_response(self, reason: str) -> EmbeddingProviderError:
        return EmbeddingProviderError(
            f"Invalid response from embedding provider: {reason}",
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
            details={"model": self._settings.model, "reason": reason},
        )
