"""Client for the aggregator backend API (source catalogs, searches, capabilities)."""

from __future__ import annotations

from typing import Any
from urllib import parse as urllib_parse

import httpx
import structlog

from indexarr.core.search.accessors import as_categories
from indexarr.core.search.errors import SourceFetchError
from indexarr.core.search.models import SourceCatalogs, SourceDescriptor, SourceKind

logger = structlog.get_logger("indexarr.backend")

PROXIED_INDEXERS_PATH = "/api/v2.0/indexers"
NATIVE_INDEXERS_PATH = "/api/native/local"
NATIVE_SEARCH_PATH = "/api/native/search"


class BackendClient:
    """Async client for the backend endpoints the search engine depends on."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the backend client.

        Args:
            base_url: Base URL of the backend (e.g., http://127.0.0.1:9117)
            api_key: Optional API key, sent as X-Api-Key
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        headers = {"X-Api-Key": api_key} if api_key else {}
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )
        self.logger = structlog.get_logger("indexarr.backend")

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(
        self,
        path: str,
        source_id: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """GET a backend path, raising SourceFetchError on any failure."""
        log_url = path
        if params:
            log_url = f"{path}?{urllib_parse.urlencode(params)}"

        try:
            self.logger.debug("Making backend request", source_id=source_id, url=log_url)
            response = await self.client.get(path, params=params)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            self.logger.warning(
                "Backend HTTP error",
                source_id=source_id,
                url=log_url,
                status_code=e.response.status_code,
            )
            raise SourceFetchError(
                source_id,
                f"HTTP {e.response.status_code} error",
                status_code=e.response.status_code,
            ) from e
        except httpx.TimeoutException as e:
            self.logger.warning("Backend request timed out", source_id=source_id, url=log_url)
            raise SourceFetchError(source_id, "Request timed out") from e
        except httpx.HTTPError as e:
            self.logger.warning(
                "Backend connection error", source_id=source_id, url=log_url, error=str(e)
            )
            raise SourceFetchError(source_id, f"Failed to connect to backend: {e}") from e

    async def _get_json(
        self,
        path: str,
        source_id: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        response = await self._get(path, source_id, params)
        try:
            return response.json()
        except ValueError as e:
            raise SourceFetchError(
                source_id,
                f"Invalid JSON response (status: {response.status_code})",
                status_code=response.status_code,
            ) from e

    async def list_proxied_sources(self) -> list[SourceDescriptor]:
        """List proxied Torznab sources, sorted by name.

        Raises:
            SourceFetchError: If the catalog could not be fetched
        """
        data = await self._get_json(PROXIED_INDEXERS_PATH, "proxied-catalog")
        items = data.get("indexers", []) if isinstance(data, dict) else []
        sources = [
            SourceDescriptor(
                id=str(item["id"]),
                name=str(item.get("name") or item["id"]),
                kind=SourceKind.PROXIED,
                description=item.get("description"),
                language=item.get("language"),
                enabled=bool(item.get("enabled", True)),
                url=item.get("url"),
            )
            for item in items
            if isinstance(item, dict) and item.get("id") is not None
        ]
        sources.sort(key=lambda s: s.name.casefold())
        return sources

    async def list_native_sources(self) -> list[SourceDescriptor]:
        """List native sources (all of them, enabled or not).

        Raises:
            SourceFetchError: If the catalog could not be fetched
        """
        data = await self._get_json(NATIVE_INDEXERS_PATH, "native-catalog")
        items = data.get("indexers", []) if isinstance(data, dict) else []
        sources: list[SourceDescriptor] = []
        for item in items:
            if not isinstance(item, dict) or item.get("id") is None:
                continue
            categories = item.get("categories")
            sources.append(
                SourceDescriptor(
                    id=str(item["id"]),
                    name=str(item.get("name") or item["id"]),
                    kind=SourceKind.NATIVE,
                    declared_categories=(
                        as_categories(categories)
                        if isinstance(categories, list)
                        else None
                    ),
                    description=item.get("description"),
                    language=item.get("language"),
                    enabled=bool(item.get("enabled", True)),
                )
            )
        return sources

    async def load_catalogs(self) -> SourceCatalogs:
        """Load both catalogs. A failing catalog endpoint yields an empty catalog."""
        catalogs = SourceCatalogs()
        try:
            catalogs.proxied = await self.list_proxied_sources()
        except SourceFetchError as e:
            self.logger.error("Failed to load proxied sources", error=str(e))
        try:
            catalogs.native = await self.list_native_sources()
        except SourceFetchError as e:
            self.logger.error("Failed to load native sources", error=str(e))

        self.logger.info(
            "Source catalogs loaded",
            native_count=len(catalogs.native),
            proxied_count=len(catalogs.proxied),
        )
        return catalogs

    async def native_search(self, params: dict[str, str]) -> list[Any]:
        """Search native sources (one source when params carry ``indexer``).

        Returns:
            JSON array of native raw records

        Raises:
            SourceFetchError: On transport/status failure or a non-array payload
        """
        source_id = params.get("indexer", "all-native")
        data = await self._get_json(NATIVE_SEARCH_PATH, source_id, params)
        if not isinstance(data, list):
            raise SourceFetchError(source_id, "Expected a JSON array of results")
        return data

    async def proxied_search(self, source_id: str, params: dict[str, str]) -> list[Any]:
        """Search one proxied source.

        Returns:
            The ``results`` array of proxied raw records

        Raises:
            SourceFetchError: On transport/status failure or a malformed payload
        """
        path = f"{PROXIED_INDEXERS_PATH}/{urllib_parse.quote(source_id, safe='')}/results"
        data = await self._get_json(path, source_id, params)
        if not isinstance(data, dict):
            raise SourceFetchError(source_id, "Expected a JSON object with results")
        results = data.get("results") or []
        if not isinstance(results, list):
            raise SourceFetchError(source_id, "Expected results to be a list")
        return results

    async def proxied_caps(self, source_id: str) -> str:
        """Fetch a proxied source's Torznab capability document (XML text)."""
        path = f"{PROXIED_INDEXERS_PATH}/{urllib_parse.quote(source_id, safe='')}/caps"
        response = await self._get(path, source_id)
        return response.text
