"""Search session state and the controller that drives it."""

from __future__ import annotations

import structlog
import structlog.contextvars as contextvars
from pydantic import BaseModel, Field

from indexarr.core.categories import Category
from indexarr.core.metrics import (
    search_failures_total,
    search_requests_total,
    search_stale_discarded_total,
)
from indexarr.core.search.categories import CapabilitiesBackend, CategoryResolver
from indexarr.core.search.errors import InvalidSelector, SearchFailure
from indexarr.core.search.executor import FanOutExecutor
from indexarr.core.search.models import CanonicalResult, Selector, SourceCatalogs
from indexarr.core.search.pipeline import (
    DEFAULT_PAGE_SIZE,
    FilterState,
    Page,
    SortField,
    SortState,
    build_view,
    result_categories,
    result_indexers,
)
from indexarr.core.search.selector import resolve_plan, validate_selector

logger = structlog.get_logger("indexarr.search.session")


class SearchSession(BaseModel):
    """State of one search as seen by the UI.

    Never patched in place: every change produces a new instance.
    """

    sequence: int = Field(default=0, description="Submission number that produced this state")
    selector: Selector | None = None
    query: str = ""
    category: str = ""
    results: list[CanonicalResult] = Field(default_factory=list)
    loading: bool = False
    error: str | None = None
    filters: FilterState = Field(default_factory=FilterState)
    sort: SortState = Field(default_factory=SortState)
    page: int = 1


class SearchController:
    """Owns a SearchSession and applies submissions and view changes to it.

    Each submission gets a monotonic sequence number. A fan-out that completes
    after a newer submission was made is discarded, so a slow earlier search
    can no longer overwrite the results of a later one.
    """

    def __init__(
        self,
        executor: FanOutExecutor,
        catalogs: SourceCatalogs | None = None,
        capabilities: CapabilitiesBackend | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.executor = executor
        self.catalogs = catalogs or SourceCatalogs()
        self.category_resolver = CategoryResolver(capabilities or executor.backend)  # type: ignore[arg-type]
        self.page_size = page_size
        self._session = SearchSession()
        self._sequence = 0
        self.logger = structlog.get_logger("indexarr.search.session")

    @property
    def session(self) -> SearchSession:
        return self._session

    def set_catalogs(self, catalogs: SourceCatalogs) -> None:
        self.catalogs = catalogs

    async def submit(
        self,
        selector: Selector | None,
        query: str,
        category: int | str | None = None,
    ) -> SearchSession:
        """Run a search and replace the session with its outcome.

        Args:
            selector: Search scope
            query: Free text query
            category: Optional category code

        Returns:
            The session after the search (or the newer session, if this search
            was superseded while running)

        Raises:
            InvalidSelector: If no selector is set or it references an unknown
                source; the session is left untouched
        """
        if selector is None:
            raise InvalidSelector("", "no source selected")
        validate_selector(selector, self.catalogs)

        self._sequence += 1
        sequence = self._sequence
        category_text = "" if category is None else str(category)

        self._session = SearchSession(
            sequence=sequence,
            selector=selector,
            query=query,
            category=category_text,
            results=[],
            loading=True,
            error=None,
            filters=self._session.filters,
            sort=SortState(field=SortField.SEEDERS, direction="desc"),
            page=1,
        )
        search_requests_total.labels(scope=selector.scope).inc()

        with contextvars.bound_contextvars(search_sequence=sequence):
            self.logger.info(
                "Search submitted", scope=selector.scope, query=query, category=category_text
            )
            try:
                results = await self._run(selector, query, category_text)
            except SearchFailure as failure:
                return self._complete(
                    sequence, results=[], error=str(failure), cause=failure.__cause__
                )

            return self._complete(sequence, results=results, error=None)

    async def _run(self, selector: Selector, query: str, category: str) -> list[CanonicalResult]:
        try:
            plan = resolve_plan(selector, self.catalogs, query, category)
            return await self.executor.execute(plan)
        except SearchFailure:
            raise
        except Exception as e:
            raise SearchFailure(str(e) or "Search failed") from e

    def _complete(
        self,
        sequence: int,
        results: list[CanonicalResult],
        error: str | None,
        cause: BaseException | None = None,
    ) -> SearchSession:
        if sequence != self._sequence:
            search_stale_discarded_total.inc()
            self.logger.info(
                "Discarding stale search outcome",
                latest_sequence=self._sequence,
                result_count=len(results),
            )
            return self._session

        if error is not None:
            search_failures_total.inc()
            self.logger.error(
                "Search failed",
                error=error,
                error_type=type(cause).__name__ if cause else None,
            )
        else:
            self.logger.info("Search completed", result_count=len(results))

        self._session = self._session.model_copy(
            update={"results": results, "loading": False, "error": error, "page": 1}
        )
        return self._session

    def set_filters(
        self,
        indexer: str | None = None,
        category: str | None = None,
        text: str | None = None,
    ) -> SearchSession:
        """Update any of the filters. Resets to page 1."""
        current = self._session.filters
        filters = FilterState(
            indexer=current.indexer if indexer is None else indexer,
            category=current.category if category is None else category,
            text=current.text if text is None else text,
        )
        self._session = self._session.model_copy(update={"filters": filters, "page": 1})
        return self._session

    def select_sort(self, field: SortField) -> SearchSession:
        """Select or toggle the sort column. Resets to page 1."""
        sort = self._session.sort.select(field)
        self._session = self._session.model_copy(update={"sort": sort, "page": 1})
        return self._session

    def set_page(self, page: int) -> SearchSession:
        """Move to a page, clamped to the available range."""
        last_page = max(1, self.view(page=1).total_pages)
        page = min(max(1, page), last_page)
        self._session = self._session.model_copy(update={"page": page})
        return self._session

    def next_page(self) -> SearchSession:
        return self.set_page(self._session.page + 1)

    def prev_page(self) -> SearchSession:
        return self.set_page(self._session.page - 1)

    def view(self, page: int | None = None) -> Page:
        """The visible page for the current session state."""
        session = self._session
        return build_view(
            session.results,
            session.filters,
            session.sort,
            page=session.page if page is None else page,
            page_size=self.page_size,
        )

    def indexer_options(self) -> list[str]:
        return result_indexers(self._session.results)

    def category_options(self) -> list[Category]:
        return result_categories(self._session.results)

    async def categories_for(self, selector: Selector | None) -> list[Category]:
        """Categories to offer for a selector."""
        return await self.category_resolver.resolve(selector, self.catalogs)
