"""General API routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from indexarr import __version__
from indexarr.core.tracing import get_trace_id

router = APIRouter(prefix="/api")
logger = structlog.get_logger("indexarr.routes.general")


@router.get("/")
async def root() -> JSONResponse:
    """Root endpoint with the running version."""
    trace_id = get_trace_id()
    logger.info("Root endpoint accessed")
    return JSONResponse(
        {
            "message": "Hello, Indexarr!",
            "version": __version__,
            "status": "ok",
            "trace_id": trace_id,
        }
    )


@router.get("/health")
async def health() -> JSONResponse:
    """Health check endpoint."""
    trace_id = get_trace_id()
    logger.debug("Health check")
    return JSONResponse(
        {
            "status": "healthy",
            "trace_id": trace_id,
        }
    )
