"""Torznab category table.

Numeric category codes follow the Newznab/Torznab convention: the thousands
are top-level groups (2000 = Movies) and the remaining digits select a
subcategory (2040 = Movies/HD). The table is built once at import time and is
read-only.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, Field

_CATEGORY_LABELS: dict[int, str] = {
    # Console
    1000: "Console",
    1010: "NDS",
    1020: "PSP",
    1030: "Wii",
    1040: "Xbox",
    1050: "Xbox 360",
    1060: "Wiiware",
    1070: "Xbox 360 DLC",
    1080: "PS3",
    1090: "Other",
    1110: "3DS",
    1120: "PS Vita",
    1130: "WiiU",
    1140: "Xbox One",
    1180: "PS4",
    # Movies
    2000: "Movies",
    2010: "Movies/Foreign",
    2020: "Movies/Other",
    2030: "Movies/SD",
    2040: "Movies/HD",
    2045: "Movies/UHD",
    2050: "Movies/BluRay",
    2060: "Movies/3D",
    2070: "Movies/DVD",
    2080: "Movies/WEB-DL",
    # Audio
    3000: "Audio",
    3010: "Audio/MP3",
    3020: "Audio/Video",
    3030: "Audio/Audiobook",
    3040: "Audio/Lossless",
    3050: "Audio/Other",
    3060: "Audio/Foreign",
    # PC
    4000: "PC",
    4010: "PC/0day",
    4020: "PC/ISO",
    4030: "PC/Mac",
    4040: "PC/Mobile-Other",
    4050: "PC/Games",
    4060: "PC/Mobile-iOS",
    4070: "PC/Mobile-Android",
    # TV
    5000: "TV",
    5010: "TV/WEB-DL",
    5020: "TV/Foreign",
    5030: "TV/SD",
    5040: "TV/HD",
    5045: "TV/UHD",
    5050: "TV/Other",
    5060: "TV/Sport",
    5070: "TV/Anime",
    5080: "TV/Documentary",
    # XXX
    6000: "XXX",
    6010: "XXX/DVD",
    6020: "XXX/WMV",
    6030: "XXX/XviD",
    6040: "XXX/x264",
    6050: "XXX/Other",
    6060: "XXX/ImageSet",
    6070: "XXX/Packs",
    # Books
    7000: "Books",
    7010: "Books/Mags",
    7020: "Books/EBook",
    7030: "Books/Comics",
    7040: "Books/Technical",
    7050: "Books/Other",
    7060: "Books/Foreign",
    # Other
    8000: "Other",
    8010: "Other/Misc",
    8020: "Other/Hashed",
}

TORZNAB_CATEGORIES: Mapping[int, str] = MappingProxyType(_CATEGORY_LABELS)


class Category(BaseModel):
    """A selectable search category."""

    id: int = Field(..., description="Torznab category code")
    name: str = Field(..., description="Human readable label")


def category_label(category_id: int) -> str | None:
    """Return the label for a category code, or None if the code is unknown."""
    return TORZNAB_CATEGORIES.get(category_id)


def describe_category(category_id: int) -> Category:
    """Build a Category for a code, labelling unknown codes generically."""
    return Category(id=category_id, name=category_label(category_id) or f"Category {category_id}")


def all_categories(sort_by_label: bool = False) -> list[Category]:
    """Return the full category table.

    Args:
        sort_by_label: Sort alphabetically by label instead of by code

    Returns:
        List of every known category
    """
    categories = [Category(id=cid, name=name) for cid, name in TORZNAB_CATEGORIES.items()]
    if sort_by_label:
        categories.sort(key=lambda c: c.name.casefold())
    return categories
