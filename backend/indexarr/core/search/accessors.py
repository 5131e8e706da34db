"""Field accessors tolerant of either raw payload casing.

Native payloads use snake_case keys (``title``, ``seeders``, ``leechers``),
proxied Torznab payloads use capitalised keys (``Title``, ``Seeders``,
``Peers``). Each accessor takes the source kind, which decides the key order
so the casing native to that payload wins. None of these functions raise.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from indexarr.core.search.models import SourceKind

# Canonical field -> keys to try, in preference order, per source kind.
NATIVE_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("title", "Title"),
    "guid": ("guid", "Guid"),
    "link": ("link", "Link"),
    "magnet": ("magnet", "Magnet", "MagnetUri"),
    "size": ("size", "Size"),
    "seeders": ("seeders", "Seeders"),
    "peers": ("leechers", "peers", "Peers"),
    "grabs": ("grabs", "Grabs"),
    "indexer_name": ("indexer", "Indexer"),
    "indexer_id": ("indexer_id", "IndexerId"),
    "publish_date": ("publish_date", "PublishDate"),
    "categories": ("categories", "Category"),
    "comments": ("Comments", "comments", "guid", "Guid"),
    "info_hash": ("info_hash", "InfoHash"),
}

PROXIED_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("Title", "title"),
    "guid": ("Guid", "guid"),
    "link": ("Link", "link"),
    "magnet": ("Magnet", "MagnetUri", "magnet"),
    "size": ("Size", "size"),
    "seeders": ("Seeders", "seeders"),
    "peers": ("Peers", "leechers", "peers"),
    "grabs": ("Grabs", "grabs"),
    "indexer_name": ("Indexer", "Tracker", "indexer"),
    "indexer_id": ("IndexerId", "TrackerId", "indexer_id"),
    "publish_date": ("PublishDate", "publish_date"),
    "categories": ("Category", "categories"),
    "comments": ("Comments", "comments", "guid", "Guid"),
    "info_hash": ("InfoHash", "info_hash"),
}


def keys_for(kind: SourceKind) -> dict[str, tuple[str, ...]]:
    """Return the key preference table for a source kind."""
    if kind is SourceKind.NATIVE:
        return NATIVE_KEYS
    return PROXIED_KEYS


def first_present(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the first value that is present and not None/empty string."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def as_int(value: Any) -> int:
    """Coerce a numeric-ish value to int, falling back to 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number)


def parse_int(text: str) -> int | None:
    """Parse a base-10 integer string, None when int() rejects it."""
    try:
        return int(text.strip())
    except ValueError:
        return None


def as_str(value: Any) -> str | None:
    """Coerce a scalar to a stripped string, None when empty or not a scalar."""
    if value is None or isinstance(value, Mapping | list | tuple | set):
        return None
    text = str(value).strip()
    return text or None


def as_categories(value: Any) -> list[int]:
    """Coerce a category field to a list of ints.

    Accepts a list, a single number, or a comma separated string. Entries that
    are not integers are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: Sequence[Any] = [part.strip() for part in value.split(",")]
    elif isinstance(value, list | tuple | set):
        items = list(value)
    else:
        items = [value]

    categories: list[int] = []
    for item in items:
        if isinstance(item, bool):
            continue
        if isinstance(item, int):
            categories.append(item)
        elif isinstance(item, str):
            code = parse_int(item)
            if code is not None:
                categories.append(code)
        elif isinstance(item, float) and item.is_integer():
            categories.append(int(item))
    return categories


def get_result_title(record: Mapping[str, Any], kind: SourceKind) -> str:
    return as_str(first_present(record, keys_for(kind)["title"])) or ""


def get_result_guid(record: Mapping[str, Any], kind: SourceKind) -> str:
    return as_str(first_present(record, keys_for(kind)["guid"])) or ""


def get_result_link(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["link"]))


def get_result_magnet(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["magnet"]))


def get_result_size(record: Mapping[str, Any], kind: SourceKind) -> int:
    return as_int(first_present(record, keys_for(kind)["size"]))


def get_result_seeders(record: Mapping[str, Any], kind: SourceKind) -> int:
    return as_int(first_present(record, keys_for(kind)["seeders"]))


def get_result_peers(record: Mapping[str, Any], kind: SourceKind) -> int:
    return as_int(first_present(record, keys_for(kind)["peers"]))


def get_result_grabs(record: Mapping[str, Any], kind: SourceKind) -> int:
    return as_int(first_present(record, keys_for(kind)["grabs"]))


def get_result_indexer(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["indexer_name"]))


def get_result_indexer_id(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["indexer_id"]))


def get_result_date(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["publish_date"]))


def get_result_categories(record: Mapping[str, Any], kind: SourceKind) -> list[int]:
    return as_categories(first_present(record, keys_for(kind)["categories"]))


def get_result_comments(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["comments"]))


def get_result_info_hash(record: Mapping[str, Any], kind: SourceKind) -> str | None:
    return as_str(first_present(record, keys_for(kind)["info_hash"]))
