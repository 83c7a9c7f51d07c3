"""Pydantic request/response schemas for the knowledge-base API.

Request schemas end with ``Request``, response schemas with ``Response``.
``Field`` constraints double as validation (422 on bad input) and as
OpenAPI documentation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from src.models.ingestion import UrlOutcome
from src.models.knowledge import Partition, PartitionStats, SearchHit


class SearchRequest(BaseModel):
    """Free-text query against any partition (internal tooling)."""

    query: str = Field(..., min_length=1, max_length=1000)
    top_k: int | None = Field(default=None, ge=1, le=50)
    url_filter: str | None = Field(default=None, max_length=500)
    blog_only: bool = False
    min_relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    partition: Partition = Partition.INTERNAL


class ClientSearchRequest(BaseModel):
    """Query from the customer-facing assistant; always served from CLIENT."""

    query: str = Field(..., min_length=1, max_length=1000)
    top_k: int | None = Field(default=None, ge=1, le=20)
    min_relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)


class SearchResponse(BaseModel):
    query: str
    partition: Partition
    total: int
    results: list[SearchHit]


class IngestRequest(BaseModel):
    """Explicit page URLs and/or blog slugs to (re-)ingest."""

    urls: list[str] = Field(default_factory=list, max_length=500)
    blog_slugs: list[str] = Field(default_factory=list, max_length=500)

    @model_validator(mode="after")
    def require_targets(self) -> IngestRequest:
        if not self.urls and not self.blog_slugs:
            raise ValueError("Provide at least one URL or blog slug")
        return self


class IngestResponse(BaseModel):
    succeeded: int
    failed: int
    outcomes: list[UrlOutcome]


class StatsResponse(BaseModel):
    partitions: list[PartitionStats]


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, bool | int | str]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
