"""Resolve the categories offered for the current selector."""

from __future__ import annotations

from typing import Protocol
from xml.etree import ElementTree as ET

import structlog

from indexarr.core.categories import Category, all_categories, describe_category
from indexarr.core.metrics import capability_fetch_failures_total
from indexarr.core.search.accessors import parse_int
from indexarr.core.search.errors import CapabilityFetchError, SourceFetchError
from indexarr.core.search.models import (
    AllNative,
    AllProxied,
    Selector,
    SingleNative,
    SingleProxied,
    SourceCatalogs,
)

logger = structlog.get_logger("indexarr.search.categories")


class CapabilitiesBackend(Protocol):
    async def proxied_caps(self, source_id: str) -> str: ...


def parse_caps_categories(xml_text: str, source_id: str = "") -> list[Category]:
    """Parse the categories advertised by a Torznab capability document.

    Every ``<category id=".." name="..">`` element is returned in document
    order; ``<subcat>`` elements are not categories.

    Raises:
        CapabilityFetchError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise CapabilityFetchError(source_id, f"Invalid capability XML: {e}") from e

    categories: list[Category] = []
    for element in root.iter():
        # Strip any namespace: {ns}category -> category
        if element.tag.rsplit("}", 1)[-1] != "category":
            continue
        raw_id = (element.get("id") or "0").strip()
        categories.append(
            Category(
                id=parse_int(raw_id) or 0,
                name=element.get("name") or "",
            )
        )
    return categories


class CategoryResolver:
    """Determines the category list for a selector.

    No selector offers nothing. A single native source offers its declared
    categories, or the whole table when it declares none. The group selectors
    offer the whole table sorted by label. A single proxied source offers
    exactly what its capability document advertises, and nothing when that
    document cannot be read.
    """

    def __init__(self, backend: CapabilitiesBackend) -> None:
        self.backend = backend
        self.logger = structlog.get_logger("indexarr.search.categories")

    async def resolve(self, selector: Selector | None, catalogs: SourceCatalogs) -> list[Category]:
        """Resolve categories for a selector.

        Args:
            selector: Current selector, None when nothing is selected
            catalogs: Loaded source catalogs

        Returns:
            Categories to offer (empty disables the category control)
        """
        match selector:
            case None:
                return []
            case SingleNative(source_id=source_id):
                source = catalogs.find_native(source_id)
                if source is None:
                    return []
                if source.declared_categories:
                    return [describe_category(cid) for cid in source.declared_categories]
                return all_categories()
            case AllNative() | AllProxied():
                return all_categories(sort_by_label=True)
            case SingleProxied(source_id=source_id):
                if catalogs.find_proxied(source_id) is None:
                    return []
                return await self._fetch_capabilities(source_id)
        return []

    async def _fetch_capabilities(self, source_id: str) -> list[Category]:
        try:
            xml_text = await self.backend.proxied_caps(source_id)
            categories = parse_caps_categories(xml_text, source_id)
        except SourceFetchError as e:
            capability_fetch_failures_total.inc()
            self.logger.warning(
                "Failed to load capabilities",
                source_id=source_id,
                status_code=e.status_code,
                error=str(e),
            )
            return []

        self.logger.debug(
            "Loaded capabilities", source_id=source_id, category_count=len(categories)
        )
        return categories
