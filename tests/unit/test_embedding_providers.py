"""Unit tests for embedding provider adapters -- OpenAI-compatible, Ollama."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.utils.errors import EmbeddingError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "",
        "ollama_base_url": "http://localhost:11434",
        "embedding_dimension": 1536,
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _mock_client(*vectors: list[float]) -> AsyncMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=v) for v in vectors]
    response.usage = MagicMock(total_tokens=10 * len(vectors))
    client = AsyncMock()
    client.embeddings.create = AsyncMock(return_value=response)
    return client


def _api_error() -> openai.APIError:
    return openai.APIError(message="Rate limit", request=MagicMock(), body=None)


# ======================================================================
# OpenAI-compatible Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_defaults_to_ada(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings())
        assert provider.get_dimension() == 1536
        assert provider.get_provider_name() == "openai_embedding"

    def test_known_model_dimension(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_embedding_model="text-embedding-3-large"))
        assert provider.get_dimension() == 3072

    def test_unknown_model_uses_configured_dimension(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(openai_embedding_model="custom-embed", embedding_dimension=384)
        )
        assert provider.get_dimension() == 384

    def test_compatible_endpoint_label(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_base_url="http://llm.local/v1"))
        assert provider.get_provider_name() == "openai-compatible_embedding"

    def test_is_available_depends_on_key(self) -> None:
        assert OpenAIEmbeddingProvider(_settings()).is_available() is True
        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_embed_success(self) -> None:
        mock_client = _mock_client([0.1] * 1536, [0.2] * 1536)

        with patch(
            "src.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            result = await provider.embed(["hello", "world"])

        assert len(result) == 2
        assert result[1][0] == 0.2
        kwargs = mock_client.embeddings.create.call_args.kwargs
        assert kwargs["model"] == "text-embedding-ada-002"
        assert kwargs["input"] == ["hello", "world"]

    @pytest.mark.asyncio
    async def test_embed_empty_skips_api(self) -> None:
        mock_client = _mock_client()
        with patch(
            "src.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            assert await provider.embed([]) == []
        mock_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        mock_client = _mock_client([0.5] * 1536)
        with patch(
            "src.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            result = await provider.embed_single("hello")

        assert len(result) == 1536

    @pytest.mark.asyncio
    async def test_api_error_becomes_embedding_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_api_error())

        with patch(
            "src.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(_settings())
            with pytest.raises(EmbeddingError) as exc_info:
                await provider.embed(["test"])

        assert exc_info.value.provider_name == "openai_embedding"


# ======================================================================
# Ollama Embedding Provider
# ======================================================================


def _tags_response(*names: str) -> MagicMock:
    response = MagicMock(status_code=200)
    response.json.return_value = {"models": [{"name": n} for n in names]}
    return response


class TestOllamaEmbeddingProvider:
    def test_defaults_to_nomic(self) -> None:
        provider = OllamaEmbeddingProvider(_settings())
        assert provider.get_provider_name() == "ollama_embedding:nomic-embed-text"
        assert provider.get_dimension() == 768

    def test_known_local_model_dimension(self) -> None:
        provider = OllamaEmbeddingProvider(_settings(ollama_embedding_model="all-minilm:l6-v2"))
        assert provider.get_dimension() == 384

    def test_unknown_local_model_uses_configured_dimension(self) -> None:
        provider = OllamaEmbeddingProvider(
            _settings(ollama_embedding_model="my-embedder", embedding_dimension=512)
        )
        assert provider.get_dimension() == 512

    def test_is_available_when_model_pulled(self) -> None:
        with patch(
            "src.providers.embedding.ollama_embedding_provider.httpx.get",
            return_value=_tags_response("llama3:8b", "nomic-embed-text:latest"),
        ):
            assert OllamaEmbeddingProvider(_settings()).is_available() is True

    def test_unavailable_when_model_missing(self) -> None:
        with patch(
            "src.providers.embedding.ollama_embedding_provider.httpx.get",
            return_value=_tags_response("llama3:8b"),
        ):
            assert OllamaEmbeddingProvider(_settings()).is_available() is False

    def test_unavailable_when_server_down(self) -> None:
        with patch(
            "src.providers.embedding.ollama_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert OllamaEmbeddingProvider(_settings()).is_available() is False

    @pytest.mark.asyncio
    async def test_embed_success(self) -> None:
        mock_client = _mock_client([0.3] * 768)
        with patch(
            "src.providers.embedding.ollama_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ) as client_cls:
            provider = OllamaEmbeddingProvider(_settings(ollama_base_url="http://gpu-box:11434/"))
            result = await provider.embed(["test text"])

        assert len(result) == 1
        assert len(result[0]) == 768
        assert client_cls.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"
        assert mock_client.embeddings.create.call_args.kwargs["model"] == "nomic-embed-text"

    @pytest.mark.asyncio
    async def test_api_error_becomes_embedding_error(self) -> None:
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_api_error())
        with patch(
            "src.providers.embedding.ollama_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OllamaEmbeddingProvider(_settings())
            with pytest.raises(EmbeddingError):
                await provider.embed(["test"])
