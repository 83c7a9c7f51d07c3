"""Query-time retrieval: hybrid ranking and URL-derived provenance."""

from src.services.search.hybrid_search import HybridSearchRanker, extract_keywords
from src.services.search.url_metadata import UrlMetadata, metadata_from_url

__all__ = ["HybridSearchRanker", "UrlMetadata", "extract_keywords", "metadata_from_url"]
