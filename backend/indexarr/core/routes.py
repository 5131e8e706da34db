"""Application routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from indexarr.routes import general
from indexarr.routes.search import create_search_router

logger = structlog.get_logger("indexarr.routes")


def create_app_router() -> APIRouter:
    """Create and configure main application router.

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter()

    router.include_router(general.router, tags=["general"])

    search_router = create_search_router()
    router.include_router(search_router, tags=["search"])
    logger.debug("Included search router in app_router")

    return router
