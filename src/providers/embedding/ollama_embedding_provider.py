"""Local embedding provider backed by an Ollama server.

Ollama exposes an OpenAI-compatible ``/v1/embeddings`` route, so the same
``openai`` async client used for the hosted provider is pointed at it.
The model is configurable (``OLLAMA_EMBEDDING_MODEL``); ``nomic-embed-text``
is the default.  A scratch database built with one local model cannot be
reused with another of a different size: the store rejects the mismatch.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_OLLAMA_BATCH_LIMIT = 512

# Output sizes of commonly pulled embedding models.
_LOCAL_MODEL_DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
    "snowflake-arctic-embed": 1024,
}


def _base_model(name: str) -> str:
    """``"nomic-embed-text:latest"`` -> ``"nomic-embed-text"``."""
    return name.split(":", 1)[0]


class OllamaEmbeddingProvider(IEmbeddingProvider):
    """Embeds text with a model served by a local Ollama instance."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_embedding_model or "nomic-embed-text"
        self._dimension = _LOCAL_MODEL_DIMENSIONS.get(
            _base_model(self._model), settings.embedding_dimension
        )
        self._client = openai.AsyncOpenAI(base_url=f"{self._base_url}/v1", api_key="ollama")

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        try:
            for start in range(0, len(texts), _OLLAMA_BATCH_LIMIT):
                batch = texts[start : start + _OLLAMA_BATCH_LIMIT]
                response = await self._client.embeddings.create(input=batch, model=self._model)
                vectors.extend(item.embedding for item in response.data)
                logger.debug("ollama_embedding_batch", model=self._model, batch_size=len(batch))
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"Ollama embedding call failed for {self._model}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return vectors

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return f"ollama_embedding:{self._model}"

    def is_available(self) -> bool:
        """Return ``True`` if the server answers and the model has been pulled."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
        if response.status_code != 200:
            return False

        pulled = {_base_model(m.get("name", "")) for m in response.json().get("models", [])}
        if _base_model(self._model) not in pulled:
            logger.warning("ollama_model_missing", model=self._model, base_url=self._base_url)
            return False
        return True
