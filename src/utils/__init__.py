"""Utility modules for the site knowledge base.

- **errors** -- Exception hierarchy rooted at KnowledgeBaseError; each
  ingestion step raises its own subclass so the coordinator can map
  failures onto per-URL outcomes.
- **logging** -- structlog setup with coloured console output in
  development and structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    EmbeddingError,
    EmptyExtractionError,
    FetchError,
    InvalidEmbeddingDimensionError,
    KnowledgeBaseError,
    StoreError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "EmbeddingError",
    "EmptyExtractionError",
    "FetchError",
    "InvalidEmbeddingDimensionError",
    "KnowledgeBaseError",
    "StoreError",
    "configure_logging",
    "get_logger",
]
