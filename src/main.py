"""Knowledge-base FastAPI application entry point.

Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and builds the service graph (see ``src/bootstrap.py``)
inside the application lifespan so the store is opened once per process
and closed on shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.bootstrap import build_components, close_components
from src.config.loader import load_config
from src.config.settings import Settings
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
    app_env=settings.app_env,
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Open the store and build services on startup, close them on shutdown."""
    components = await build_components(settings, config)
    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info("app_startup", version="0.1.0", environment=settings.app_env)

    yield

    await close_components(components)
    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Site Knowledge API",
        version="0.1.0",
        description=(
            "Semantic search over ingested site content, partitioned for "
            "internal tooling and the customer-facing assistant."
        ),
        lifespan=_lifespan,
    )

    # Last added = first executed.
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
