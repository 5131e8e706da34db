"""Search routes: sources, categories, submission and result views."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from indexarr.core.backend import BackendClient
from indexarr.core.search.errors import InvalidSelector
from indexarr.core.search.models import CanonicalResult, SourceDescriptor
from indexarr.core.search.pipeline import SortField
from indexarr.core.search.selector import parse_selector, selector_value
from indexarr.core.search.session import SearchController
from indexarr.core.utils import format_date, format_size

logger = structlog.get_logger("indexarr.routes.search")


class SearchSubmit(BaseModel):
    selector: str = Field("", description='Selector value: "all", "all-native" or a source id')
    query: str = Field("", description="Free text query")
    category: str | None = Field(None, description="Optional category code")


class FilterUpdate(BaseModel):
    indexer: str | None = Field(None, description="Exact indexer name, empty for all")
    category: str | None = Field(None, description="Category code, empty for all")
    text: str | None = Field(None, description="Case-insensitive text filter")


class SortUpdate(BaseModel):
    field: SortField


class PageUpdate(BaseModel):
    page: int = Field(..., description="1-based page number (clamped)")


def get_controller(request: Request) -> SearchController:
    controller = getattr(request.app.state, "search_controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Search engine is not initialized.",
        )
    return controller


def get_backend(request: Request) -> BackendClient:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Backend client is not initialized.",
        )
    return backend


def serialize_source(source: SourceDescriptor) -> dict[str, Any]:
    return source.model_dump(mode="json")


def serialize_result(result: CanonicalResult) -> dict[str, Any]:
    """Result with the display fields the results table shows."""
    data = result.model_dump(mode="json")
    data["size_display"] = format_size(result.size)
    data["date_display"] = format_date(result.publish_date)
    data["details_url"] = result.details_url
    data["send_target"] = result.send_target
    return data


def serialize_view(controller: SearchController) -> dict[str, Any]:
    """The current session and its visible page."""
    session = controller.session
    page = controller.view()
    return {
        "sequence": session.sequence,
        "selector": selector_value(session.selector),
        "query": session.query,
        "category": session.category,
        "loading": session.loading,
        "error": session.error,
        "filters": session.filters.model_dump(),
        "sort": {
            "field": session.sort.field.value if session.sort.field else None,
            "direction": session.sort.direction,
        },
        "page": page.page,
        "page_size": page.page_size,
        "total_pages": page.total_pages,
        "filtered_count": page.filtered_count,
        "total_count": page.total_count,
        "has_prev": page.has_prev,
        "has_next": page.has_next,
        "results": [serialize_result(result) for result in page.items],
        "indexers": controller.indexer_options(),
        "categories": [c.model_dump() for c in controller.category_options()],
    }


def create_search_router() -> APIRouter:
    """Create search router.

    Returns:
        Configured APIRouter instance
    """
    router = APIRouter(prefix="/api/search", tags=["search"])

    @router.get("/sources")
    async def list_sources(
        refresh: bool = Query(False, description="Reload catalogs from the backend"),
        controller: SearchController = Depends(get_controller),
        backend: BackendClient = Depends(get_backend),
    ) -> dict[str, Any]:
        """List the native and proxied source catalogs."""
        if refresh:
            controller.set_catalogs(await backend.load_catalogs())
            logger.info("Source catalogs refreshed")

        catalogs = controller.catalogs
        return {
            "native": [serialize_source(s) for s in catalogs.native],
            "proxied": [serialize_source(s) for s in catalogs.proxied],
        }

    @router.get("/categories")
    async def list_categories(
        selector: str = Query("", description="Selector value"),
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        """Categories offered for a selector (empty when nothing is selected)."""
        try:
            parsed = parse_selector(selector, controller.catalogs)
        except InvalidSelector as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

        categories = await controller.categories_for(parsed)
        return {
            "selector": selector,
            "categories": [c.model_dump() for c in categories],
        }

    @router.post("")
    async def submit_search(
        payload: SearchSubmit,
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        """Run a search and return the first page of the new session."""
        try:
            selector = parse_selector(payload.selector, controller.catalogs)
            if selector is None:
                raise InvalidSelector("", "no source selected")
            await controller.submit(selector, payload.query, payload.category)
        except InvalidSelector as e:
            logger.info("Rejected search submission", selector=payload.selector, reason=e.reason)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

        return serialize_view(controller)

    @router.get("")
    async def get_search(
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        """Current session view."""
        return serialize_view(controller)

    @router.put("/filters")
    async def update_filters(
        payload: FilterUpdate,
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        controller.set_filters(
            indexer=payload.indexer, category=payload.category, text=payload.text
        )
        return serialize_view(controller)

    @router.post("/sort")
    async def update_sort(
        payload: SortUpdate,
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        """Select a sort column; selecting the current column flips direction."""
        controller.select_sort(payload.field)
        return serialize_view(controller)

    @router.put("/page")
    async def update_page(
        payload: PageUpdate,
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        controller.set_page(payload.page)
        return serialize_view(controller)

    @router.get("/results/{index}/send-target")
    async def get_send_target(
        index: int,
        controller: SearchController = Depends(get_controller),
    ) -> dict[str, Any]:
        """Link to hand to a download client for a row of the visible page.

        ``index`` is the 0-based row on the current page.
        """
        items = controller.view().items
        if index < 0 or index >= len(items):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Result not found on this page."
            )

        result = items[index]
        if not result.send_target:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Result has neither a magnet nor a download link.",
            )
        return {
            "title": result.title,
            "send_target": result.send_target,
            "is_magnet": bool(result.magnet),
        }

    return router
