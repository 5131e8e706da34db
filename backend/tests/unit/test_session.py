"""Tests for SearchController and the session lifecycle."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from indexarr.core.search.errors import InvalidSelector, SourceFetchError
from indexarr.core.search.executor import FanOutExecutor
from indexarr.core.search.models import (
    AllNative,
    AllProxied,
    SingleNative,
    SingleProxied,
    SourceCatalogs,
)
from indexarr.core.search.pipeline import SortField, SortState
from indexarr.core.search.session import SearchController


@pytest.fixture
def controller(catalogs: SourceCatalogs, mock_backend: MagicMock) -> SearchController:
    return SearchController(FanOutExecutor(mock_backend), catalogs=catalogs)


async def test_all_proxied_scenario_with_one_500(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    async def proxied_search(source_id: str, params: dict[str, str]):
        if source_id == "a":
            return [{"Title": "Ubuntu ISO", "Seeders": 50, "Size": 2_000_000_000}]
        raise SourceFetchError(source_id, "HTTP 500 error", status_code=500)

    mock_backend.proxied_search = AsyncMock(side_effect=proxied_search)

    session = await controller.submit(AllProxied(), "ubuntu")

    assert len(session.results) == 1
    result = session.results[0]
    assert result.indexer_name == "Alpha"
    assert result.seeders == 50
    assert result.size == 2_000_000_000
    assert session.error is None
    assert session.loading is False


async def test_submit_resets_session(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    mock_backend.native_search = AsyncMock(return_value=[{"title": "x"}])
    await controller.submit(AllNative(), "first")
    controller.select_sort(SortField.TITLE)
    controller.set_page(3)

    session = await controller.submit(SingleNative(source_id="nyaa"), "second", 5070)

    assert session.sequence == 2
    assert session.query == "second"
    assert session.category == "5070"
    assert session.selector == SingleNative(source_id="nyaa")
    assert session.sort == SortState(field=SortField.SEEDERS, direction="desc")
    assert session.page == 1
    mock_backend.native_search.assert_awaited_with(
        {"q": "second", "cat": "5070", "indexer": "nyaa"}
    )


async def test_loading_is_set_while_in_flight(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    release = asyncio.Event()

    async def native_search(params: dict[str, str]):
        await release.wait()
        return [{"title": "x"}]

    mock_backend.native_search = AsyncMock(side_effect=native_search)

    task = asyncio.create_task(controller.submit(AllNative(), "q"))
    await asyncio.sleep(0)
    assert controller.session.loading is True
    assert controller.session.results == []

    release.set()
    session = await task
    assert session.loading is False
    assert [r.title for r in session.results] == ["x"]


async def test_stale_outcome_is_discarded(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    slow_release = asyncio.Event()

    async def proxied_search(source_id: str, params: dict[str, str]):
        if params["q"] == "slow":
            await slow_release.wait()
            return [{"Title": "stale"}]
        return [{"Title": "fresh"}]

    mock_backend.proxied_search = AsyncMock(side_effect=proxied_search)

    slow = asyncio.create_task(controller.submit(SingleProxied(source_id="a"), "slow"))
    await asyncio.sleep(0)

    fresh = await controller.submit(SingleProxied(source_id="a"), "fast")
    assert [r.title for r in fresh.results] == ["fresh"]

    slow_release.set()
    after = await slow

    assert after.sequence == 2
    assert [r.title for r in controller.session.results] == ["fresh"]
    assert controller.session.query == "fast"


async def test_invalid_selector_leaves_session_untouched(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    before = controller.session

    with pytest.raises(InvalidSelector):
        await controller.submit(SingleProxied(source_id="ghost"), "q")
    with pytest.raises(InvalidSelector):
        await controller.submit(None, "q")

    assert controller.session is before
    mock_backend.proxied_search.assert_not_awaited()


async def test_search_failure_sets_error(
    catalogs: SourceCatalogs, mock_backend: MagicMock
) -> None:
    executor = MagicMock()
    executor.backend = mock_backend
    executor.execute = AsyncMock(side_effect=RuntimeError("backend exploded"))
    controller = SearchController(executor, catalogs=catalogs)

    session = await controller.submit(AllNative(), "q")

    assert session.error == "backend exploded"
    assert session.results == []
    assert session.loading is False


async def test_filters_persist_and_reset_page(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    mock_backend.native_search = AsyncMock(
        return_value=[
            {"title": f"item {i}", "indexer": "Nyaa" if i % 2 else "YTS", "categories": [2000]}
            for i in range(60)
        ]
    )
    await controller.submit(AllNative(), "q")
    controller.set_page(2)

    session = controller.set_filters(indexer="Nyaa")
    assert session.page == 1
    assert session.filters.indexer == "Nyaa"
    assert controller.view().filtered_count == 30

    session = controller.set_filters(text="item 1")
    assert session.filters.indexer == "Nyaa"
    assert session.filters.text == "item 1"

    session = await controller.submit(AllNative(), "again")
    assert session.filters.indexer == "Nyaa"


async def test_sort_and_page_controls(
    controller: SearchController, mock_backend: MagicMock
) -> None:
    mock_backend.native_search = AsyncMock(
        return_value=[{"title": f"t{i}", "size": i} for i in range(60)]
    )
    await controller.submit(AllNative(), "q")

    view = controller.view()
    assert view.total_pages == 3
    assert view.items[0].title == "t0"  # all seeders equal, arrival order kept

    controller.next_page()
    assert controller.session.page == 2
    controller.set_page(99)
    assert controller.session.page == 3
    controller.set_page(-4)
    assert controller.session.page == 1
    controller.prev_page()
    assert controller.session.page == 1

    controller.set_page(2)
    session = controller.select_sort(SortField.SIZE)
    assert session.page == 1
    assert session.sort == SortState(field=SortField.SIZE, direction="desc")
    assert controller.view().items[0].size == 59

    session = controller.select_sort(SortField.SIZE)
    assert session.sort.direction == "asc"
    assert controller.view().items[0].size == 0


async def test_filter_options(controller: SearchController, mock_backend: MagicMock) -> None:
    mock_backend.native_search = AsyncMock(
        return_value=[
            {"title": "a", "indexer": "YTS", "categories": [2040]},
            {"title": "b", "categories": [5070, 2040]},
        ]
    )
    await controller.submit(AllNative(), "q")

    assert controller.indexer_options() == ["Unknown", "YTS"]
    assert [c.id for c in controller.category_options()] == [2040, 5070]


async def test_categories_for_selector(controller: SearchController) -> None:
    categories = await controller.categories_for(SingleNative(source_id="nyaa"))
    assert [c.id for c in categories] == [5070, 2000]
    assert await controller.categories_for(None) == []
