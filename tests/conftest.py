"""Shared pytest fixtures for the knowledge-base test suite."""

from __future__ import annotations

import hashlib
import math
import re
import struct
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.page_provider import IPageProvider, ITextExtractor
from src.providers.store.sqlite_knowledge_store import SQLiteKnowledgeStore
from src.services.ingestion.chunker import SemanticChunker
from src.services.ingestion.classifier import ClassifierRules, ContentClassifier
from src.services.ingestion.embedding_client import EmbeddingClient
from src.services.ingestion.ingestion_service import IngestionCoordinator
from src.services.search.hybrid_search import HybridSearchRanker
from src.utils.errors import EmbeddingError, FetchError

TEST_DIMENSION = 16

_TOKEN = re.compile(r"[\W_]+")


# ---------------------------------------------------------------------------
# Deterministic embedding providers
# ---------------------------------------------------------------------------


def _hash_to_vector(text: str, dimension: int) -> list[float]:
    """Map *text* to a unit vector derived from its SHA-256 digest."""
    values: list[float] = []
    counter = 0
    while len(values) < dimension:
        digest = hashlib.sha256(f"{counter}:{text}".encode()).digest()
        for i in range(0, len(digest), 4):
            (raw,) = struct.unpack(">I", digest[i : i + 4])
            values.append(raw / 0xFFFFFFFF - 0.5)
        counter += 1
    values = values[:dimension]
    norm = math.sqrt(sum(v * v for v in values)) or 1.0
    return [v / norm for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """Hash-based embeddings; set ``fail`` or ``dimension_override`` to misbehave."""

    def __init__(self, dimension: int = TEST_DIMENSION) -> None:
        self.dimension = dimension
        self.fail = False
        self.dimension_override: int | None = None
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise EmbeddingError(message="mock embedding failure", provider_name="mock")
        size = self.dimension_override or self.dimension
        return [_hash_to_vector(t, size) for t in texts]

    def get_dimension(self) -> int:
        return self.dimension

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class VocabularyEmbeddingProvider(IEmbeddingProvider):
    """Bag-of-words embeddings: one axis per known word plus a shared "other" axis.

    Texts sharing known words land close together, which makes ranking
    scenarios computable by hand.
    """

    def __init__(self, vocabulary: list[str]) -> None:
        self._index = {word: i for i, word in enumerate(vocabulary)}
        self._dimension = len(vocabulary) + 1

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(t) for t in texts]

    def _vector(self, text: str) -> list[float]:
        values = [0.0] * self._dimension
        for token in text.lower().split():
            word = _TOKEN.sub("", token)
            if word:
                values[self._index.get(word, self._dimension - 1)] += 1.0
        norm = math.sqrt(sum(v * v for v in values)) or 1.0
        return [v / norm for v in values]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "vocabulary-embedding"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Page fakes
# ---------------------------------------------------------------------------


class FakePageProvider(IPageProvider):
    """Serves pages from a dict; unknown URLs raise FetchError."""

    def __init__(self, pages: dict[str, str] | None = None) -> None:
        self.pages: dict[str, str] = dict(pages or {})
        self.fetched: list[str] = []

    async def fetch(self, url: str) -> str:
        self.fetched.append(url)
        if url not in self.pages:
            raise FetchError(message=f"HTTP 404 for {url}", provider_name="fake")
        return self.pages[url]

    def get_provider_name(self) -> str:
        return "fake-pages"


class PassthroughExtractor(ITextExtractor):
    """Treats the fetched body as already-extracted text."""

    def extract_text(self, html: str) -> str:
        return html.strip()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Minimal loaded-config dict with classifier rules."""
    return {
        "classifier": {
            "admin_paths": ["/admin/"],
            "api_paths": ["/api/"],
            "non_public_paths": ["/internal-notes/"],
            "foreign_tenant_paths": ["/partner-site/"],
            "business_paths": ["/blog/", "/services/", "/about/"],
            "public_paths": ["/contact/", "/gallery/"],
            "min_words": 10,
        },
        "search": {"blog_path": "/blog/"},
    }


@pytest.fixture
def classifier(mock_config: dict[str, Any]) -> ContentClassifier:
    return ContentClassifier(ClassifierRules.from_config(mock_config))


@pytest.fixture
def embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def embedding_client(embedding_provider: MockEmbeddingProvider) -> EmbeddingClient:
    return EmbeddingClient(embedding_provider, dimension=TEST_DIMENSION, batch_size=4)


@pytest.fixture
def page_provider() -> FakePageProvider:
    return FakePageProvider()


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> AsyncIterator[SQLiteKnowledgeStore]:
    """Opened SQLite store in a temporary directory."""
    knowledge_store = SQLiteKnowledgeStore(tmp_path / "kb.db", dimension=TEST_DIMENSION)
    await knowledge_store.open()
    yield knowledge_store
    await knowledge_store.close()


@pytest.fixture
def make_coordinator(
    page_provider: FakePageProvider,
    embedding_client: EmbeddingClient,
    classifier: ContentClassifier,
) -> Callable[..., IngestionCoordinator]:
    """Factory building a coordinator around the given store."""

    def _make(knowledge_store: Any, **overrides: Any) -> IngestionCoordinator:
        kwargs: dict[str, Any] = {
            "page_provider": page_provider,
            "text_extractor": PassthroughExtractor(),
            "chunker": SemanticChunker(max_chunk_size=200, overlap=20),
            "embedding_client": embedding_client,
            "classifier": classifier,
            "store": knowledge_store,
            "site_base_url": "https://example.com",
        }
        kwargs.update(overrides)
        return IngestionCoordinator(**kwargs)

    return _make


@pytest.fixture
def make_ranker(embedding_client: EmbeddingClient) -> Callable[..., HybridSearchRanker]:
    def _make(knowledge_store: Any, client: EmbeddingClient | None = None) -> HybridSearchRanker:
        return HybridSearchRanker(knowledge_store, client or embedding_client, site_name="Acme")

    return _make


@pytest.fixture
def long_article_text() -> str:
    """Multi-paragraph prose comfortably above the word floor."""
    paragraphs = [
        (
            f"Paragraph {i} explains how our team approaches enterprise software "
            f"projects, from discovery workshops through delivery and long-term support. "
            f"Every engagement starts with understanding the business problem."
        )
        for i in range(1, 7)
    ]
    return "\n\n".join(paragraphs)
