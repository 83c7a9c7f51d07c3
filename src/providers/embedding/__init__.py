"""Embedding provider implementations.

Two implementations of IEmbeddingProvider:
    1. OpenAIEmbeddingProvider -- text-embedding-ada-002 (1536 dims), hosted
       or any OpenAI-compatible endpoint.
    2. OllamaEmbeddingProvider -- a locally served model, nomic-embed-text
       (768 dims) by default.

The knowledge store records the dimension it was created with, so switching
provider means rebuilding the database.
"""

from src.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "OllamaEmbeddingProvider"]
