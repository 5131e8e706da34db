"""Resolve a search selector into a fan-out plan of backend calls."""

from __future__ import annotations

import structlog

from indexarr.core.search.errors import InvalidSelector
from indexarr.core.search.models import (
    AllNative,
    AllProxied,
    FanOutPlan,
    PlanEntry,
    Selector,
    SingleNative,
    SingleProxied,
    SourceCatalogs,
    SourceKind,
)

logger = structlog.get_logger("indexarr.search.selector")

ALL_PROXIED_VALUE = "all"
ALL_NATIVE_VALUE = "all-native"


def parse_selector(value: str | None, catalogs: SourceCatalogs) -> Selector | None:
    """Parse the console's indexer select value into a Selector.

    Native ids are matched before proxied ids.

    Args:
        value: "" (nothing selected), "all", "all-native" or a source id
        catalogs: Currently loaded source catalogs

    Returns:
        Selector, or None when nothing is selected

    Raises:
        InvalidSelector: If the value names no known source
    """
    if value is None or not value.strip():
        return None
    value = value.strip()
    if value == ALL_PROXIED_VALUE:
        return AllProxied()
    if value == ALL_NATIVE_VALUE:
        return AllNative()
    if catalogs.find_native(value):
        return SingleNative(source_id=value)
    if catalogs.find_proxied(value):
        return SingleProxied(source_id=value)
    raise InvalidSelector(value)


def selector_value(selector: Selector | None) -> str:
    """Inverse of parse_selector."""
    match selector:
        case None:
            return ""
        case AllProxied():
            return ALL_PROXIED_VALUE
        case AllNative():
            return ALL_NATIVE_VALUE
        case SingleNative(source_id=source_id) | SingleProxied(source_id=source_id):
            return source_id
    raise InvalidSelector(repr(selector), "unsupported selector type")


def validate_selector(selector: Selector, catalogs: SourceCatalogs) -> None:
    """Check that a selector only references cataloged sources.

    Raises:
        InvalidSelector: If a single-source selector references an unknown id
    """
    match selector:
        case SingleNative(source_id=source_id):
            if catalogs.find_native(source_id) is None:
                raise InvalidSelector(source_id, "unknown native source")
        case SingleProxied(source_id=source_id):
            if catalogs.find_proxied(source_id) is None:
                raise InvalidSelector(source_id, "unknown proxied source")


class SelectorResolver:
    """Turns a Selector and a query into a FanOutPlan.

    Native sources are multiplexed by the backend, so "all native" becomes one
    batched call to the native search endpoint. Proxied sources are separate
    Torznab servers, so "all proxied" becomes one call per source.
    """

    def __init__(self, catalogs: SourceCatalogs) -> None:
        self.catalogs = catalogs

    def resolve(
        self,
        selector: Selector,
        query: str,
        category: int | str | None = None,
    ) -> FanOutPlan:
        """Build the plan for one search.

        Args:
            selector: Search scope
            query: Free text query
            category: Optional category code restricting the search

        Returns:
            Ordered fan-out plan

        Raises:
            InvalidSelector: If the selector references an unknown source
        """
        validate_selector(selector, self.catalogs)

        base_params: dict[str, str] = {"q": query}
        if category not in (None, ""):
            base_params["cat"] = str(category)

        entries: list[PlanEntry]
        match selector:
            case SingleNative(source_id=source_id):
                source = self.catalogs.find_native(source_id)
                entries = [
                    PlanEntry(
                        source_id=source_id,
                        source_kind=SourceKind.NATIVE,
                        source_name=source.name if source else None,
                        params={**base_params, "indexer": source_id},
                    )
                ]
            case AllNative():
                entries = [PlanEntry(source_kind=SourceKind.NATIVE, params=dict(base_params))]
            case SingleProxied(source_id=source_id):
                source = self.catalogs.find_proxied(source_id)
                entries = [
                    PlanEntry(
                        source_id=source_id,
                        source_kind=SourceKind.PROXIED,
                        source_name=source.name if source else None,
                        params=dict(base_params),
                    )
                ]
            case AllProxied():
                entries = [
                    PlanEntry(
                        source_id=source.id,
                        source_kind=SourceKind.PROXIED,
                        source_name=source.name,
                        params=dict(base_params),
                    )
                    for source in self.catalogs.proxied
                ]
            case _:
                raise InvalidSelector(repr(selector), "unsupported selector type")

        logger.debug(
            "Resolved fan-out plan",
            scope=selector.scope,
            entries=len(entries),
            query=query,
            category=base_params.get("cat"),
        )
        return FanOutPlan(entries=entries)


def resolve_plan(
    selector: Selector,
    catalogs: SourceCatalogs,
    query: str,
    category: int | str | None = None,
) -> FanOutPlan:
    """Shortcut for ``SelectorResolver(catalogs).resolve(selector, query, category)``."""
    return SelectorResolver(catalogs).resolve(selector, query, category)
