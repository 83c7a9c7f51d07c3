"""Domain models -- re-exports all public model classes.

    - knowledge.py  -- partitions, chunk rows, classification, search hits
    - ingestion.py  -- per-URL ingestion states and batch summaries
"""

from __future__ import annotations

from src.models.ingestion import (
    IngestionState,
    IngestionSummary,
    ReclassifySummary,
    UrlOutcome,
)
from src.models.knowledge import (
    ChunkCategory,
    ChunkQuality,
    Classification,
    Neighbor,
    NeighborFilter,
    NewChunk,
    Partition,
    PartitionStats,
    SearchHit,
    SearchOptions,
    StoredChunk,
)

__all__ = [
    "ChunkCategory",
    "ChunkQuality",
    "Classification",
    "IngestionState",
    "IngestionSummary",
    "Neighbor",
    "NeighborFilter",
    "NewChunk",
    "Partition",
    "PartitionStats",
    "ReclassifySummary",
    "SearchHit",
    "SearchOptions",
    "StoredChunk",
    "UrlOutcome",
]
