"""Filter, sort and paginate canonical search results.

Everything here is pure and synchronous; the session recomputes the view from
the full result list on every state change.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from indexarr.core.categories import Category, category_label, describe_category
from indexarr.core.search.models import CanonicalResult
from indexarr.core.utils import to_epoch_ms

DEFAULT_PAGE_SIZE = 25

SortDirection = Literal["asc", "desc"]


class SortField(str, Enum):
    """Sortable result columns."""

    INDEXER = "Indexer"
    TITLE = "Title"
    SIZE = "Size"
    SEEDERS = "Seeders"
    DATE = "Date"


_SORT_KEYS: dict[SortField, Callable[[CanonicalResult], Any]] = {
    SortField.INDEXER: lambda r: r.indexer_name or "",
    SortField.TITLE: lambda r: r.title or "",
    SortField.SIZE: lambda r: r.size,
    SortField.SEEDERS: lambda r: r.seeders,
    SortField.DATE: lambda r: to_epoch_ms(r.publish_date),
}


class FilterState(BaseModel):
    """Result filters; empty values match everything."""

    indexer: str = Field(default="", description="Exact indexer name")
    category: str = Field(default="", description="Category code as text")
    text: str = Field(default="", description="Case-insensitive substring")


class SortState(BaseModel):
    """Current sort column and direction. No field means arrival order."""

    field: SortField | None = None
    direction: SortDirection = "desc"

    def select(self, field: SortField) -> SortState:
        """Return the state after clicking a column.

        Re-selecting the current field toggles direction; a new field starts
        descending.
        """
        if self.field == field:
            return SortState(field=field, direction="asc" if self.direction == "desc" else "desc")
        return SortState(field=field, direction="desc")


class Page(BaseModel):
    """One page of the filtered and sorted results."""

    items: list[CanonicalResult] = Field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 0
    filtered_count: int = 0
    total_count: int = 0

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def _category_filter_value(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def matches_filters(result: CanonicalResult, filters: FilterState) -> bool:
    """Return True when a result passes every active filter."""
    if filters.indexer and result.indexer_name != filters.indexer:
        return False

    if filters.category:
        category_id = _category_filter_value(filters.category)
        if category_id is None or category_id not in result.categories:
            return False

    if not filters.text:
        return True

    needle = filters.text.lower()
    if needle in result.title.lower():
        return True
    if needle in result.indexer_name.lower():
        return True
    return any(needle in (category_label(cid) or "").lower() for cid in result.categories)


def filter_results(
    results: Sequence[CanonicalResult], filters: FilterState
) -> list[CanonicalResult]:
    """Keep the results that pass the filters, preserving order."""
    return [result for result in results if matches_filters(result, filters)]


def sort_results(
    results: Sequence[CanonicalResult], sort: SortState
) -> list[CanonicalResult]:
    """Stable sort on the selected field. Ties keep their input order."""
    if sort.field is None:
        return list(results)
    key = _SORT_KEYS[sort.field]
    # sorted(reverse=True) still keeps equal elements in input order
    return sorted(results, key=key, reverse=sort.direction == "desc")


def total_pages(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    return math.ceil(count / page_size) if count else 0


def paginate(
    results: Sequence[CanonicalResult],
    page: int,
    page_size: int = DEFAULT_PAGE_SIZE,
    total_count: int | None = None,
) -> Page:
    """Slice one page out of the results (pages are 1-based)."""
    start = (page - 1) * page_size
    items = list(results[start : start + page_size]) if start >= 0 else []
    return Page(
        items=items,
        page=page,
        page_size=page_size,
        total_pages=total_pages(len(results), page_size),
        filtered_count=len(results),
        total_count=len(results) if total_count is None else total_count,
    )


def build_view(
    results: Sequence[CanonicalResult],
    filters: FilterState,
    sort: SortState,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Page:
    """Filter, then sort, then paginate."""
    visible = sort_results(filter_results(results, filters), sort)
    return paginate(visible, page, page_size, total_count=len(results))


def result_indexers(results: Sequence[CanonicalResult]) -> list[str]:
    """Distinct indexer names for the indexer filter, sorted."""
    return sorted({result.indexer_name or "Unknown" for result in results})


def result_categories(results: Sequence[CanonicalResult]) -> list[Category]:
    """Distinct category codes present in the results, ascending."""
    codes = sorted({cid for result in results for cid in result.categories})
    return [describe_category(cid) for cid in codes]
