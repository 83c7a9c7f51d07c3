"""Object-graph assembly shared by the API server and the CLI.

Every collaborator is built here and injected by constructor, so the web
app and one-shot CLI commands run the same chunker, classifier rules,
embedding model and store.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.page.html_text_extractor import HtmlTextExtractor
from src.providers.page.http_page_provider import HttpPageProvider
from src.providers.store.sqlite_knowledge_store import SQLiteKnowledgeStore
from src.services.ingestion.chunker import SemanticChunker
from src.services.ingestion.classifier import ClassifierRules, ContentClassifier
from src.services.ingestion.embedding_client import EmbeddingClient
from src.services.ingestion.ingestion_service import IngestionCoordinator
from src.services.ingestion.sitemap import SitemapReader
from src.services.search.hybrid_search import HybridSearchRanker
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Return the embedding provider named by ``EMBEDDING_PROVIDER``."""
    name = app_settings.embedding_provider.lower()
    if name == "openai":
        return OpenAIEmbeddingProvider(settings=app_settings)
    if name in ("ollama", "nomic"):
        return OllamaEmbeddingProvider(settings=app_settings)
    raise ConfigurationError(
        message=f"Unknown embedding provider {app_settings.embedding_provider!r}",
        provider_name="config",
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


async def build_components(
    app_settings: Settings, app_config: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build and open every component.  Pair with :func:`close_components`."""
    app_config = app_config if app_config is not None else load_config(settings=app_settings)

    embedding_provider = build_embedding_provider(app_settings)
    dimension = embedding_provider.get_dimension()

    store = SQLiteKnowledgeStore(app_settings.knowledge_db_path, dimension=dimension)
    await store.open()

    page_provider = HttpPageProvider(timeout_seconds=app_settings.fetch_timeout_seconds)
    embedding_client = EmbeddingClient(
        embedding_provider,
        dimension=dimension,
        batch_size=app_settings.embedding_batch_size,
        timeout_seconds=app_settings.embedding_timeout_seconds,
    )
    classifier = ContentClassifier(ClassifierRules.from_config(app_config))
    blog_path = (app_config.get("search") or {}).get("blog_path", "/blog/")

    coordinator = IngestionCoordinator(
        page_provider=page_provider,
        text_extractor=HtmlTextExtractor(),
        chunker=SemanticChunker(
            max_chunk_size=app_settings.chunk_max_size,
            overlap=app_settings.chunk_overlap,
            respect_paragraphs=app_settings.chunk_respect_paragraphs,
        ),
        embedding_client=embedding_client,
        classifier=classifier,
        store=store,
        sitemap_reader=SitemapReader(page_provider),
        site_base_url=app_settings.site_base_url,
    )
    ranker = HybridSearchRanker(
        store,
        embedding_client,
        site_name=app_settings.site_name,
        keyword_bonus=app_settings.search_keyword_bonus,
        blog_path=blog_path,
    )

    logger.info(
        "components_built",
        embedding_provider=embedding_provider.get_provider_name(),
        dimension=dimension,
        db_path=app_settings.knowledge_db_path,
    )
    return {
        "settings": app_settings,
        "embedding_provider": embedding_provider,
        "store": store,
        "page_provider": page_provider,
        "coordinator": coordinator,
        "ranker": ranker,
    }


async def close_components(components: dict[str, Any]) -> None:
    await components["page_provider"].aclose()
    await components["store"].close()

