"""Search error taxonomy."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for search engine errors."""


class InvalidSelector(SearchError, ValueError):
    """A selector references a source that is not in the loaded catalogs."""

    def __init__(self, value: str, reason: str = "unknown source") -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid selector {value!r}: {reason}")


class SourceFetchError(SearchError):
    """A single backend call failed (transport error, non-2xx, bad payload)."""

    def __init__(
        self,
        source_id: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.source_id = source_id
        self.status_code = status_code
        super().__init__(f"{source_id}: {message}")


class CapabilityFetchError(SourceFetchError):
    """A proxied source's capability document could not be fetched or parsed."""


class SearchFailure(SearchError):
    """The search failed before any merged result list was produced."""
