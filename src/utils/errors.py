"""Custom exception hierarchy for the site knowledge base.

All application exceptions inherit from :class:`KnowledgeBaseError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "httpx", "sqlite") caused the failure.

The hierarchy is organized by ingestion step:

    KnowledgeBaseError  (base -- catch-all for any knowledge-base error)
    +-- FetchError                     (page unreachable or non-2xx)
    +-- EmptyExtractionError           (page yielded no usable text)
    +-- EmbeddingError                 (embedding call failed or timed out)
    +-- InvalidEmbeddingDimensionError (vector length != configured D)
    +-- StoreError                     (partition store read/write failure)
    +-- ConfigurationError             (startup / missing config)

The ingestion coordinator turns every one of these into a per-URL outcome
so a batch never aborts; only search-time errors reach API callers.
"""


class KnowledgeBaseError(Exception):
    """Base exception for all knowledge-base errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Embedding call failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Fetch / extraction errors
# ---------------------------------------------------------------------------

class FetchError(KnowledgeBaseError):
    """Raised when a page cannot be fetched (network error, timeout, non-2xx)."""

    def __init__(
        self,
        message: str = "Page fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyExtractionError(KnowledgeBaseError):
    """Raised when a fetched page produces no usable text."""

    def __init__(
        self,
        message: str = "No usable text extracted",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding errors
# ---------------------------------------------------------------------------

class EmbeddingError(KnowledgeBaseError):
    """Raised when the embedding capability fails or returns nothing usable.

    At ingestion time the embedding client absorbs this and returns an
    empty list; at search time it propagates to the caller.
    """

    def __init__(
        self,
        message: str = "Embedding call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidEmbeddingDimensionError(KnowledgeBaseError):
    """Raised when a vector's length differs from the configured dimension.

    This is a configuration or programming error, never a transient one,
    so it is not absorbed by the embedding client.
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        provider_name: str | None = None,
    ) -> None:
        self._expected = expected
        self._actual = actual
        super().__init__(
            message=f"Embedding dimension mismatch: expected {expected}, got {actual}",
            provider_name=provider_name,
        )

    @property
    def expected(self) -> int:
        return self._expected

    @property
    def actual(self) -> int:
        return self._actual


# ---------------------------------------------------------------------------
# Storage / configuration errors
# ---------------------------------------------------------------------------

class StoreError(KnowledgeBaseError):
    """Raised when a partition store operation fails (write, read, schema)."""

    def __init__(
        self,
        message: str = "Knowledge store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(KnowledgeBaseError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
