"""Unit tests for component assembly in src.bootstrap."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.bootstrap import build_components, build_embedding_provider, close_components
from src.config.settings import Settings
from src.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.utils.errors import ConfigurationError


class TestBuildEmbeddingProvider:
    def test_openai_by_default(self) -> None:
        provider = build_embedding_provider(Settings(openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)

    @pytest.mark.parametrize("name", ["ollama", "Nomic"])
    def test_local_provider_aliases(self, name: str) -> None:
        provider = build_embedding_provider(Settings(embedding_provider=name))
        assert isinstance(provider, OllamaEmbeddingProvider)

    def test_unknown_provider_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="word2vec"):
            build_embedding_provider(Settings(embedding_provider="word2vec"))


class TestBuildComponents:
    @pytest.mark.asyncio
    async def test_store_sized_to_provider_dimension(self, tmp_path: Path) -> None:
        app_settings = Settings(
            embedding_provider="ollama",
            knowledge_db_path=str(tmp_path / "kb.db"),
            site_base_url="https://example.com",
        )
        config = {"classifier": {"non_public_paths": ["/drafts/"]}, "search": {"blog_path": "/news/"}}

        components = await build_components(app_settings, config)
        try:
            assert components["store"].dimension == 768
            assert components["coordinator"].blog_url("post") == "https://example.com/blog/post"
            assert "/drafts/" in components["coordinator"]._classifier.rules.non_public_paths
        finally:
            await close_components(components)

        assert (tmp_path / "kb.db").exists()
