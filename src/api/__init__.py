"""Knowledge-base API layer: routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    ClientSearchRequest,
    ErrorResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    SearchRequest,
    SearchResponse,
    StatsResponse,
)

__all__ = [
    "ClientSearchRequest",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "IngestRequest",
    "IngestResponse",
    "RequestLoggingMiddleware",
    "SearchRequest",
    "SearchResponse",
    "StatsResponse",
    "configure_cors",
    "router",
]
