"""Application entry point for Indexarr."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from indexarr import __version__
from indexarr.core.backend import BackendClient
from indexarr.core.config import Settings, get_settings
from indexarr.core.logging import setup_logging
from indexarr.core.metrics import setup_metrics
from indexarr.core.middleware import TracingMiddleware
from indexarr.core.routes import create_app_router
from indexarr.core.search.executor import FanOutExecutor
from indexarr.core.search.session import SearchController

logger = structlog.get_logger("indexarr.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager.

    Opens the backend client (unless one was injected), loads the source
    catalogs and builds the search controller.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting Indexarr application",
        version=__version__,
        env=settings.env,
        host=settings.host_bind_address,
        port=settings.host_port,
        backend_url=settings.backend_url,
    )

    owns_backend = app.state.backend is None
    if owns_backend:
        app.state.backend = BackendClient(
            settings.backend_url,
            api_key=settings.backend_api_key,
            timeout=settings.source_timeout_seconds,
        )
    backend = app.state.backend

    catalogs = await backend.load_catalogs()
    executor = FanOutExecutor(
        backend,
        max_concurrent_sources=settings.max_concurrent_sources,
        source_timeout=settings.source_timeout_seconds,
    )
    app.state.search_controller = SearchController(
        executor,
        catalogs=catalogs,
        capabilities=backend,
        page_size=settings.page_size,
    )

    yield

    logger.info("Shutting down Indexarr application")
    if owns_backend:
        await backend.aclose()
        app.state.backend = None
        logger.info("Backend client closed")


def create_app(
    settings: Settings | None = None,
    backend: BackendClient | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings to use, defaults to get_settings()
        backend: Backend client to use instead of one built from settings

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    setup_logging(
        debug=settings.is_debug,
        logs_dir=settings.logs_dir if settings.log_to_file else None,
        log_level=settings.log_level,
    )

    app = FastAPI(
        title="Indexarr",
        description="Search aggregation across native and proxied torrent indexers",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = backend
    app.state.search_controller = None

    # Tracing middleware first so every request carries a trace_id
    app.add_middleware(TracingMiddleware)

    setup_metrics(app, __version__)

    app.include_router(create_app_router())

    return app


def main() -> None:
    """Main entry point."""
    from indexarr.core.config import reload_settings

    current_settings = reload_settings()
    app = create_app(current_settings)

    import uvicorn

    logger.info(
        "Starting uvicorn server",
        host=current_settings.host_bind_address,
        port=current_settings.host_port,
    )

    uvicorn.run(
        app,
        host=current_settings.host_bind_address,
        port=current_settings.host_port,
        log_config=None,  # We use structlog
        reload=False,
    )


if __name__ == "__main__":
    main()
