"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-length vectors.
Implementations wrap OpenAI ``text-embedding-ada-002`` or a local
model served by Ollama; callers only ever see this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- text-embedding-ada-002 (requires API key)
#   OllamaEmbeddingProvider -- nomic-embed-text (or another model) via Ollama
# Located in: src/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for the embedding capability used at ingestion and search time."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more strings to embed.

        Returns
        -------
        list[list[float]]
            One vector per input string, in input order.

        Raises
        ------
        src.utils.errors.EmbeddingError
            If the embedding API call fails.
        """

    async def embed_single(self, text: str) -> list[float]:
        """Embed one string (e.g. a search query)."""
        vectors = await self.embed([text])
        return vectors[0]

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the vectors this provider produces.

        Must match the dimension the knowledge store was created with.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-ada-002"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
