"""Batching wrapper around the embedding capability.

At the ingestion boundary the client is error-tolerant: a failed,
timed-out, or short embedding call yields ``[]`` and the caller skips the
URL without storing anything.  A vector of the wrong length is different:
it signals a misconfigured model, so
:class:`~src.utils.errors.InvalidEmbeddingDimensionError` propagates.

Query embedding (:meth:`EmbeddingClient.embed_query`) is strict and raises
:class:`~src.utils.errors.EmbeddingError` so search callers see the failure.
"""

from __future__ import annotations

import asyncio

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError, InvalidEmbeddingDimensionError

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingClient:
    """Embeds chunk lists in order-preserving batches and validates dimensions.

    Parameters
    ----------
    provider:
        The embedding capability.
    dimension:
        Expected vector length ``D``.
    batch_size:
        Texts per provider call.
    timeout_seconds:
        Upper bound on each provider call; ``None`` disables it.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        dimension: int,
        batch_size: int = 100,
        timeout_seconds: float | None = 30.0,
    ) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._provider = provider
        self._dimension = dimension
        self._batch_size = batch_size
        self._timeout = timeout_seconds

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per text, or ``[]`` if any batch fails.

        Raises
        ------
        InvalidEmbeddingDimensionError
            If any returned vector's length differs from ``dimension``.
        """
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), self._batch_size):
            batch = texts[start : start + self._batch_size]
            try:
                result = await self._call(batch)
            except EmbeddingError as exc:
                logger.warning(
                    "embedding_batch_failed",
                    provider=self._provider.get_provider_name(),
                    batch_start=start,
                    batch_size=len(batch),
                    error=str(exc),
                )
                return []

            if len(result) != len(batch):
                logger.warning(
                    "embedding_count_mismatch",
                    provider=self._provider.get_provider_name(),
                    expected=len(batch),
                    received=len(result),
                )
                return []

            self._validate(result)
            vectors.extend(result)

        return vectors

    async def embed_query(self, query: str) -> list[float]:
        """Embed a single search query.

        Raises
        ------
        EmbeddingError
            If the provider fails, times out, or returns nothing.
        InvalidEmbeddingDimensionError
            If the vector has the wrong length.
        """
        result = await self._call([query])
        if len(result) != 1:
            raise EmbeddingError(
                message="Query embedding returned no vector",
                provider_name=self._provider.get_provider_name(),
            )
        self._validate(result)
        return result[0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, batch: list[str]) -> list[list[float]]:
        """Invoke the provider under the timeout, normalising failures."""
        try:
            if self._timeout is None:
                return await self._provider.embed(batch)
            return await asyncio.wait_for(self._provider.embed(batch), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise EmbeddingError(
                message=f"Embedding call timed out after {self._timeout}s",
                provider_name=self._provider.get_provider_name(),
            ) from exc

    def _validate(self, vectors: list[list[float]]) -> None:
        for vector in vectors:
            if len(vector) != self._dimension:
                raise InvalidEmbeddingDimensionError(
                    expected=self._dimension,
                    actual=len(vector),
                    provider_name=self._provider.get_provider_name(),
                )
