"""FastAPI route definitions for the knowledge-base API.

All routes live under ``/api/v1``.  Services are created once at startup
(see ``src/main.py``) and stored on ``app.state``; handlers receive them
through ``Annotated[..., Depends(...)]`` aliases.

Endpoints:
    POST /search         -- hybrid search over any partition
    POST /client/search  -- customer-facing search, pinned to CLIENT
    POST /ingest         -- (re-)ingest explicit URLs and/or blog slugs
    GET  /stats          -- per-partition inventory
    GET  /health         -- liveness plus store/provider readiness
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.api.schemas import (
    ClientSearchRequest,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    SearchRequest,
    SearchResponse,
    StatsResponse,
)
from src.config.settings import Settings
from src.interfaces.knowledge_store import IKnowledgeStore
from src.models.ingestion import IngestionSummary
from src.models.knowledge import Partition, SearchOptions
from src.services.ingestion.ingestion_service import IngestionCoordinator
from src.services.search.hybrid_search import HybridSearchRanker
from src.utils.errors import StoreError
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_ranker(request: Request) -> HybridSearchRanker:
    return request.app.state.ranker


def _get_coordinator(request: Request) -> IngestionCoordinator:
    return request.app.state.coordinator


def _get_store(request: Request) -> IKnowledgeStore:
    return request.app.state.store


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


RankerDep = Annotated[HybridSearchRanker, Depends(_get_ranker)]
CoordinatorDep = Annotated[IngestionCoordinator, Depends(_get_coordinator)]
StoreDep = Annotated[IKnowledgeStore, Depends(_get_store)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.post("/search", response_model=SearchResponse, summary="Search the knowledge base")
async def search(body: SearchRequest, ranker: RankerDep, settings: SettingsDep) -> SearchResponse:
    options = SearchOptions(
        top_k=body.top_k or settings.search_default_top_k,
        url_filter=body.url_filter,
        blog_only=body.blog_only,
        min_relevance_score=body.min_relevance_score,
        partition=body.partition,
    )
    hits = await ranker.search(body.query, options)
    return SearchResponse(query=body.query, partition=options.partition, total=len(hits), results=hits)


@router.post(
    "/client/search",
    response_model=SearchResponse,
    summary="Customer-facing search (CLIENT partition only)",
)
async def client_search(
    body: ClientSearchRequest, ranker: RankerDep, settings: SettingsDep
) -> SearchResponse:
    """Serve the customer-facing assistant.  The partition cannot be overridden."""
    options = SearchOptions(
        top_k=body.top_k or settings.search_client_top_k,
        min_relevance_score=body.min_relevance_score,
        partition=Partition.CLIENT,
    )
    hits = await ranker.search(body.query, options)
    return SearchResponse(query=body.query, partition=Partition.CLIENT, total=len(hits), results=hits)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post("/ingest", response_model=IngestResponse, summary="Ingest URLs or blog slugs")
async def ingest(body: IngestRequest, coordinator: CoordinatorDep) -> IngestResponse:
    """Run ingestion for the given targets; blocks until every URL is processed."""
    urls = list(body.urls) + [coordinator.blog_url(s) for s in body.blog_slugs if s.strip("/ ")]
    summary: IngestionSummary = await coordinator.ingest(urls)
    logger.info("api_ingest", urls=len(urls), succeeded=summary.succeeded, failed=summary.failed)
    return IngestResponse(
        succeeded=summary.succeeded,
        failed=summary.failed,
        outcomes=summary.outcomes,
    )


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=StatsResponse, summary="Partition statistics")
async def stats(store: StoreDep) -> StatsResponse:
    return StatsResponse(partitions=[await store.stats(p) for p in Partition])


@router.get("/health", response_model=HealthResponse, summary="Application health check")
async def health_check(request: Request) -> HealthResponse:
    """Report store readiness and embedding provider configuration."""
    providers: dict[str, bool | int | str] = {}

    embedding_provider = getattr(request.app.state, "embedding_provider", None)
    if embedding_provider is not None:
        providers["embedding"] = embedding_provider.is_available()
        providers["embedding_name"] = embedding_provider.get_provider_name()

    store = getattr(request.app.state, "store", None)
    if store is not None:
        try:
            client_stats = await store.stats(Partition.CLIENT, top_n=0)
            providers["store"] = True
            providers["client_chunks"] = client_stats.total_chunks
        except StoreError as exc:
            logger.warning("health_store_unavailable", error=str(exc))
            providers["store"] = False

    if providers.get("store") and providers.get("embedding"):
        status = "healthy"
    elif providers.get("store"):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=_VERSION, providers=providers)
