"""Ingestion lifecycle models.

Each URL walks FETCHING -> EXTRACTING -> CHUNKING -> EMBEDDING ->
CLASSIFYING -> STORING -> DONE.  SKIPPED is reachable from any step on a
recoverable failure and FAILED on a hard one (embedding dimension mismatch).
Only DONE counts as a success.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IngestionState(str, Enum):  # noqa: UP042
    FETCHING = "FETCHING"
    EXTRACTING = "EXTRACTING"
    CHUNKING = "CHUNKING"
    EMBEDDING = "EMBEDDING"
    CLASSIFYING = "CLASSIFYING"
    STORING = "STORING"
    DONE = "DONE"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


class UrlOutcome(BaseModel):
    """Terminal state of one URL's ingestion run."""

    model_config = ConfigDict(frozen=True)

    url: str
    state: IngestionState
    reason: str | None = Field(default=None, description="Why the URL was skipped or failed.")
    failed_at: IngestionState | None = Field(
        default=None, description="Step that was running when the URL stopped."
    )
    chunks: int = Field(default=0, ge=0, description="Rows written to ORIGINAL.")
    internal_chunks: int = Field(default=0, ge=0)
    client_chunks: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def succeeded(self) -> bool:
        return self.state is IngestionState.DONE


class IngestionSummary(BaseModel):
    """Batch result: counts plus every per-URL outcome in input order."""

    model_config = ConfigDict(frozen=True)

    succeeded: int = 0
    failed: int = 0
    outcomes: list[UrlOutcome] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: list[UrlOutcome]) -> IngestionSummary:
        ok = sum(1 for o in outcomes if o.succeeded)
        return cls(succeeded=ok, failed=len(outcomes) - ok, outcomes=outcomes)


class ReclassifySummary(BaseModel):
    """Result of rebuilding INTERNAL and CLIENT from ORIGINAL."""

    model_config = ConfigDict(frozen=True)

    urls: int = 0
    original_chunks: int = 0
    internal_chunks: int = 0
    client_chunks: int = 0
