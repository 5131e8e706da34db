"""Normalizer for converting raw backend records to CanonicalResult."""

from __future__ import annotations

from typing import Any

import structlog

from indexarr.core.search import accessors
from indexarr.core.search.models import (
    CanonicalResult,
    NativeRaw,
    ProxiedRaw,
    RawRecord,
    SourceKind,
)
from indexarr.core.utils import parse_date

logger = structlog.get_logger("indexarr.search.normalizer")


class SearchResultNormalizer:
    """Normalizes native and proxied raw records to the canonical result shape.

    ``normalize`` is pure and total: missing or malformed fields fall back to
    defaults (0 for numbers, None/"" for strings, [] for categories) and it
    never raises.
    """

    def __init__(self) -> None:
        """Initialize normalizer."""
        self.logger = structlog.get_logger("indexarr.search.normalizer")

    def normalize(self, raw: RawRecord, source_name: str | None = None) -> CanonicalResult:
        """Normalize one raw record.

        Args:
            raw: Native or proxied raw record
            source_name: Name of the source the call was made against. For
                native records it is used when the payload names no indexer;
                for proxied records it replaces whatever the payload names.
                Defaults to the name carried by a ProxiedRaw.

        Returns:
            Normalized CanonicalResult
        """
        match raw:
            case NativeRaw(payload=payload):
                return self._build(payload, SourceKind.NATIVE, fallback_name=source_name)
            case ProxiedRaw(payload=payload, source_name=carried_name, source_id=source_id):
                return self._build(
                    payload,
                    SourceKind.PROXIED,
                    fallback_name=source_name or carried_name,
                    fallback_id=source_id,
                    inject_source=True,
                )
        raise TypeError(f"Unsupported raw record: {type(raw).__name__}")

    def normalize_many(self, records: list[RawRecord]) -> list[CanonicalResult]:
        """Normalize records, preserving order."""
        return [self.normalize(record) for record in records]

    def _build(
        self,
        payload: Any,
        kind: SourceKind,
        fallback_name: str | None = None,
        fallback_id: str | None = None,
        inject_source: bool = False,
    ) -> CanonicalResult:
        if not hasattr(payload, "get"):
            self.logger.debug("Dropping non-mapping payload", kind=kind.value)
            payload = {}

        payload_name = accessors.get_result_indexer(payload, kind)
        payload_id = accessors.get_result_indexer_id(payload, kind)
        # A proxied result is attributed to the source it was requested from
        if inject_source:
            indexer_name = fallback_name or payload_name or ""
            indexer_id = fallback_id or payload_id
        else:
            indexer_name = payload_name or fallback_name or ""
            indexer_id = payload_id or fallback_id

        return CanonicalResult(
            title=accessors.get_result_title(payload, kind),
            guid=accessors.get_result_guid(payload, kind),
            link=accessors.get_result_link(payload, kind),
            magnet=accessors.get_result_magnet(payload, kind),
            size=accessors.get_result_size(payload, kind),
            seeders=accessors.get_result_seeders(payload, kind),
            peers=accessors.get_result_peers(payload, kind),
            grabs=accessors.get_result_grabs(payload, kind),
            indexer_name=indexer_name,
            indexer_id=indexer_id,
            publish_date=self._normalize_date(accessors.get_result_date(payload, kind)),
            categories=accessors.get_result_categories(payload, kind),
            comments=accessors.get_result_comments(payload, kind),
            info_hash=accessors.get_result_info_hash(payload, kind),
        )

    def _normalize_date(self, date_str: str | None) -> str | None:
        """Return the date as ISO-8601, or None when missing or unparsable."""
        parsed = parse_date(date_str)
        if parsed is None:
            if date_str:
                self.logger.debug("Unparsable publish date", publish_date=date_str)
            return None
        return parsed.isoformat()
