"""Page ingestion pipeline for the site knowledge base.

Pipeline stages:

1. **Fetch / extract** -- via IPageProvider and ITextExtractor.
2. **Chunk** (chunker.py / SemanticChunker) -- paragraph-aligned,
   overlapping character windows.
3. **Embed** (embedding_client.py / EmbeddingClient) -- batched,
   dimension-checked vectors; failures skip the URL.
4. **Classify** (classifier.py / ContentClassifier) -- per-chunk partition
   eligibility and quality.
5. **Store** -- one transaction per URL across ORIGINAL, INTERNAL, CLIENT.

IngestionCoordinator sequences the stages; SitemapReader supplies URL
lists for full crawls.
"""

from src.services.ingestion.chunker import SemanticChunker
from src.services.ingestion.classifier import ClassifierRules, ContentClassifier
from src.services.ingestion.embedding_client import EmbeddingClient
from src.services.ingestion.ingestion_service import IngestionCoordinator
from src.services.ingestion.sitemap import SitemapReader

__all__ = [
    "ClassifierRules",
    "ContentClassifier",
    "EmbeddingClient",
    "IngestionCoordinator",
    "SemanticChunker",
    "SitemapReader",
]
