"""Models for sources, selectors, raw payloads and canonical search results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    """How a source is reached."""

    NATIVE = "native"
    PROXIED = "proxied"


class SourceDescriptor(BaseModel):
    """One searchable backend source."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Source identifier as used by the backend")
    name: str = Field(..., description="Display name")
    kind: SourceKind = Field(..., description="Native (aggregated) or proxied (Torznab)")
    declared_categories: list[int] | None = Field(
        default=None, description="Categories the source declares (native only)"
    )
    description: str | None = Field(default=None, description="Source description")
    language: str | None = Field(default=None, description="Source language")
    enabled: bool = Field(default=True, description="Whether the source is enabled")
    url: str | None = Field(default=None, description="Base URL (proxied only)")


class SourceCatalogs(BaseModel):
    """The native and proxied catalogs loaded at session start."""

    native: list[SourceDescriptor] = Field(default_factory=list)
    proxied: list[SourceDescriptor] = Field(default_factory=list)

    def find_native(self, source_id: str) -> SourceDescriptor | None:
        return next((s for s in self.native if s.id == source_id), None)

    def find_proxied(self, source_id: str) -> SourceDescriptor | None:
        return next((s for s in self.proxied if s.id == source_id), None)


# Selector variants. ``scope`` doubles as the value used by the console's
# indexer select box for the two group selectors.


class SingleNative(BaseModel):
    model_config = ConfigDict(frozen=True)

    scope: Literal["native"] = "native"
    source_id: str


class SingleProxied(BaseModel):
    model_config = ConfigDict(frozen=True)

    scope: Literal["proxied"] = "proxied"
    source_id: str


class AllNative(BaseModel):
    model_config = ConfigDict(frozen=True)

    scope: Literal["all-native"] = "all-native"


class AllProxied(BaseModel):
    model_config = ConfigDict(frozen=True)

    scope: Literal["all"] = "all"


Selector = Annotated[
    SingleNative | SingleProxied | AllNative | AllProxied,
    Field(discriminator="scope"),
]


@dataclass(frozen=True)
class NativeRaw:
    """A record returned by the native search endpoint (snake_case keys)."""

    payload: Mapping[str, Any]


@dataclass(frozen=True)
class ProxiedRaw:
    """A record returned by a proxied Torznab source (capitalised keys).

    ``source_name`` is the name of the source the call was made against; proxied
    payloads do not always say which indexer produced them.
    """

    payload: Mapping[str, Any]
    source_name: str | None = None
    source_id: str | None = None


RawRecord = NativeRaw | ProxiedRaw


class PlanEntry(BaseModel):
    """One concrete backend call in a fan-out plan."""

    model_config = ConfigDict(frozen=True)

    source_id: str | None = Field(
        default=None, description="Source id, None for the batched native call"
    )
    source_kind: SourceKind
    source_name: str | None = None
    params: dict[str, str] = Field(default_factory=dict, description="Query parameters")


@dataclass
class FanOutPlan:
    """Ordered list of backend calls for one logical selector."""

    entries: list[PlanEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


class CanonicalResult(BaseModel):
    """Normalized search record used for filtering, sorting and pagination."""

    title: str = Field(default="", description="Release title")
    guid: str = Field(default="", description="Unique identifier, usually the details URL")
    link: str | None = Field(default=None, description="Torrent file URL")
    magnet: str | None = Field(default=None, description="Magnet URI")
    size: int = Field(default=0, description="Size in bytes")
    seeders: int = Field(default=0)
    peers: int = Field(default=0, description="Leechers")
    grabs: int = Field(default=0, description="Download count")
    indexer_name: str = Field(default="", description="Indexer that produced the record")
    indexer_id: str | None = Field(default=None)
    publish_date: str | None = Field(default=None, description="ISO-8601 date or empty")
    categories: list[int] = Field(default_factory=list, description="Torznab category codes")
    comments: str | None = Field(default=None, description="Details page or comments URL")
    info_hash: str | None = Field(default=None)

    @property
    def details_url(self) -> str | None:
        """The details page, when ``comments`` is a web link."""
        if self.comments and self.comments.startswith(("http://", "https://")):
            return self.comments
        return None

    @property
    def send_target(self) -> str | None:
        """Link handed to a download client: the magnet when present, else the link."""
        return self.magnet or self.link or None
