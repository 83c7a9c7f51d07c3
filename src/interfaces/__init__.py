"""Public interface definitions for all external capabilities.

Every external service (embedding API, page fetcher, datastore) is reached
only through the abstract base classes in this package.  Concrete adapters
live in ``src/providers/`` and are wired together in ``src/main.py`` and
the CLI, so tests can inject in-memory fakes.

CONCRETE PROVIDER MAP:
    Interface           ->  Concrete implementations (in src/providers/)
    ---------------------------------------------------------------------
    IEmbeddingProvider  ->  OpenAIEmbeddingProvider, OllamaEmbeddingProvider
    IPageProvider       ->  HttpPageProvider
    ITextExtractor      ->  HtmlTextExtractor
    IKnowledgeStore     ->  SQLiteKnowledgeStore
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.knowledge_store import IKnowledgeStore, IStoreTransaction
from src.interfaces.page_provider import IPageProvider, ITextExtractor

__all__ = [
    "IEmbeddingProvider",
    "IKnowledgeStore",
    "IPageProvider",
    "IStoreTransaction",
    "ITextExtractor",
]
