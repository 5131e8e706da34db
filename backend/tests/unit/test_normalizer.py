"""Tests for SearchResultNormalizer."""

from __future__ import annotations

import pytest

from indexarr.core.search.models import CanonicalResult, NativeRaw, ProxiedRaw
from indexarr.core.search.normalizer import SearchResultNormalizer


@pytest.fixture
def normalizer() -> SearchResultNormalizer:
    return SearchResultNormalizer()


def test_normalize_native_record(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(
        NativeRaw(
            payload={
                "title": "Show S01E01 1080p",
                "guid": "https://nyaa.example/view/1",
                "link": "https://nyaa.example/download/1.torrent",
                "magnet": "magnet:?xt=urn:btih:abc",
                "size": 1073741824,
                "seeders": 120,
                "leechers": 7,
                "grabs": 900,
                "indexer": "Nyaa",
                "indexer_id": "nyaa",
                "publish_date": "2024-03-01T12:00:00Z",
                "categories": [5070],
                "info_hash": "abc",
            }
        )
    )

    assert result.title == "Show S01E01 1080p"
    assert result.size == 1073741824
    assert result.seeders == 120
    assert result.peers == 7
    assert result.grabs == 900
    assert result.indexer_name == "Nyaa"
    assert result.indexer_id == "nyaa"
    assert result.categories == [5070]
    assert result.publish_date == "2024-03-01T12:00:00+00:00"
    assert result.comments == "https://nyaa.example/view/1"
    assert result.details_url == "https://nyaa.example/view/1"
    assert result.send_target == "magnet:?xt=urn:btih:abc"


def test_normalize_proxied_record(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(
        ProxiedRaw(
            payload={
                "Title": "Movie 2160p",
                "Guid": "https://alpha.example/t/5",
                "Link": "https://alpha.example/dl/5",
                "Size": "4096",
                "Seeders": 50,
                "Peers": 3,
                "PublishDate": "2024-01-02T03:04:05",
                "Category": [2000, 2045],
                "Comments": "https://alpha.example/t/5#comments",
            },
            source_name="Alpha",
            source_id="a",
        )
    )

    assert result.title == "Movie 2160p"
    assert result.size == 4096
    assert result.seeders == 50
    assert result.peers == 3
    assert result.categories == [2000, 2045]
    assert result.indexer_name == "Alpha"
    assert result.indexer_id == "a"
    assert result.comments == "https://alpha.example/t/5#comments"
    assert result.magnet is None
    assert result.send_target == "https://alpha.example/dl/5"


def test_proxied_source_name_overrides_payload_indexer(
    normalizer: SearchResultNormalizer,
) -> None:
    result = normalizer.normalize(
        ProxiedRaw(
            payload={"Title": "x", "Tracker": "Upstream", "TrackerId": "upstream"},
            source_name="Alpha",
            source_id="a",
        )
    )
    assert result.indexer_name == "Alpha"
    assert result.indexer_id == "a"


def test_proxied_payload_indexer_used_without_source(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(ProxiedRaw(payload={"Title": "x", "Tracker": "Upstream"}))
    assert result.indexer_name == "Upstream"


@pytest.mark.parametrize(
    ("category", "expected"),
    [(["²"], []), ("²", []), ("2000,²", [2000]), (["", "٣x", 5070], [5070])],
)
def test_unparsable_categories_never_raise(
    normalizer: SearchResultNormalizer, category: object, expected: list[int]
) -> None:
    result = normalizer.normalize(
        ProxiedRaw(payload={"Title": "x", "Category": category}, source_name="Alpha")
    )
    assert result.title == "x"
    assert result.categories == expected


def test_missing_numbers_default_to_zero(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(NativeRaw(payload={"title": "bare"}))

    assert result.size == 0
    assert result.seeders == 0
    assert result.peers == 0
    assert result.grabs == 0
    assert result.categories == []
    assert result.indexer_name == ""
    assert result.publish_date is None


def test_unparsable_date_becomes_none(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(NativeRaw(payload={"publish_date": "yesterday-ish"}))
    assert result.publish_date is None


def test_non_mapping_payload_is_total(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(NativeRaw(payload=["not", "a", "dict"]))  # type: ignore[arg-type]
    assert result == CanonicalResult()


def test_details_url_requires_http_scheme(normalizer: SearchResultNormalizer) -> None:
    result = normalizer.normalize(NativeRaw(payload={"comments": "12345"}))
    assert result.comments == "12345"
    assert result.details_url is None


def test_normalize_many_preserves_order(normalizer: SearchResultNormalizer) -> None:
    records = [NativeRaw(payload={"title": str(i)}) for i in range(5)]
    assert [r.title for r in normalizer.normalize_many(records)] == ["0", "1", "2", "3", "4"]


def test_explicit_source_name_for_records_without_indexer(
    normalizer: SearchResultNormalizer,
) -> None:
    native = normalizer.normalize(NativeRaw(payload={"title": "x"}), source_name="Nyaa")
    assert native.indexer_name == "Nyaa"

    proxied = normalizer.normalize(
        ProxiedRaw(payload={"Title": "y"}, source_name="Carried"), source_name="Explicit"
    )
    assert proxied.indexer_name == "Explicit"

    own = normalizer.normalize(NativeRaw(payload={"indexer": "YTS"}), source_name="Nyaa")
    assert own.indexer_name == "YTS"
