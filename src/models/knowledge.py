"""Knowledge-base data models: partitions, chunks, classification and search.

Pydantic v2 models with frozen config.  A chunk is the atomic retrievable
unit: a bounded span of page text plus its embedding vector, the classifier
labels, and provenance back to the ORIGINAL row it was copied from.

Partitions are a closed enum so a table name can never be built from an
arbitrary string.  ORIGINAL holds everything ever ingested, INTERNAL mirrors
it for in-domain content, and CLIENT is the customer-safe subset of INTERNAL.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Partition(str, Enum):  # noqa: UP042
    """Logical chunk collections, each backed by one table."""

    ORIGINAL = "ORIGINAL"
    INTERNAL = "INTERNAL"
    CLIENT = "CLIENT"

    @property
    def table(self) -> str:
        return _PARTITION_TABLES[self]


_PARTITION_TABLES = {
    Partition.ORIGINAL: "knowledge_base_chunks",
    Partition.INTERNAL: "knowledge_base_internal",
    Partition.CLIENT: "knowledge_base_client",
}


class ChunkCategory(str, Enum):  # noqa: UP042
    """Where a chunk came from, as judged by its URL path."""

    ADMIN = "admin"
    API = "api"
    BUSINESS = "business"
    PUBLIC = "public"
    GENERAL = "general"
    RESTRICTED = "restricted"
    FOREIGN = "foreign"


class ChunkQuality(str, Enum):  # noqa: UP042
    GOOD = "good"
    POOR = "poor"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
class Classification(BaseModel):
    """Classifier verdict for one ``(url, text)`` pair.

    ``partitions`` is derived, never stored: ORIGINAL always, INTERNAL when
    ``is_internal``, CLIENT only on top of INTERNAL.
    """

    model_config = ConfigDict(frozen=True)

    is_client_facing: bool = Field(description="Safe to show the customer-facing assistant.")
    is_internal: bool = Field(default=True, description="Visible to internal tooling.")
    is_problematic: bool = Field(default=False, description="Looks like code or leaked markup.")
    category: ChunkCategory = Field(default=ChunkCategory.GENERAL)
    quality: ChunkQuality = Field(default=ChunkQuality.GOOD)

    @property
    def partitions(self) -> list[Partition]:
        targets = [Partition.ORIGINAL]
        if not self.is_internal:
            return targets
        targets.append(Partition.INTERNAL)
        if (
            self.is_client_facing
            and not self.is_problematic
            and self.quality is ChunkQuality.GOOD
        ):
            targets.append(Partition.CLIENT)
        return targets


# ---------------------------------------------------------------------------
# Stored rows
# ---------------------------------------------------------------------------
class NewChunk(BaseModel):
    """A row about to be written to one partition."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    embedding: list[float]
    category: ChunkCategory = ChunkCategory.GENERAL
    quality: ChunkQuality = ChunkQuality.GOOD
    created_at: datetime | None = Field(
        default=None,
        description="Timestamp to keep when re-writing an existing row; None stamps now.",
    )
    original_id: int | None = Field(
        default=None,
        description="Row id in ORIGINAL when this chunk is a derived copy.",
    )


class StoredChunk(BaseModel):
    """A row read back from a partition."""

    model_config = ConfigDict(frozen=True)

    id: int
    url: str
    text: str
    embedding: list[float]
    category: ChunkCategory
    quality: ChunkQuality
    created_at: datetime
    original_id: int | None = None


class Neighbor(BaseModel):
    """A stored chunk together with its L2 distance to a query vector."""

    model_config = ConfigDict(frozen=True)

    chunk: StoredChunk
    distance: float = Field(ge=0.0)


class NeighborFilter(BaseModel):
    """Optional row filters for nearest-neighbour queries.

    ``url_contains`` is a case-insensitive substring test on the URL;
    ``path_prefix`` matches the start of the URL's path component.
    """

    model_config = ConfigDict(frozen=True)

    url_contains: str | None = None
    path_prefix: str | None = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
class SearchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    top_k: int = Field(default=5, ge=1, le=100)
    url_filter: str | None = None
    blog_only: bool = False
    min_relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    partition: Partition = Partition.INTERNAL


class SearchHit(BaseModel):
    """One ranked passage with provenance derived from its URL."""

    model_config = ConfigDict(frozen=True)

    url: str
    text: str
    created_at: datetime
    distance: float = Field(description="Raw L2 distance to the query vector.")
    similarity: float = Field(description="1 / (1 + distance).")
    keyword_score: float = Field(default=0.0, description="Keyword bonus subtracted from distance.")
    rank_score: float = Field(description="distance - keyword_score; lower ranks higher.")
    source_type: str
    title: str
    category: ChunkCategory
    quality: ChunkQuality
    partition: Partition


class PartitionStats(BaseModel):
    """Inventory of one partition, as reported by the stats endpoint."""

    model_config = ConfigDict(frozen=True)

    partition: Partition
    total_chunks: int = 0
    total_urls: int = 0
    by_category_quality: dict[str, int] = Field(
        default_factory=dict,
        description='Row counts keyed "category/quality".',
    )
    top_urls: list[tuple[str, int]] = Field(default_factory=list)
    last_updated: datetime | None = None
