"""Concurrent execution of a fan-out plan."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import Any, Protocol

import structlog

from indexarr.core.metrics import (
    search_fanout_duration_seconds,
    search_results_total,
    search_source_failures_total,
)
from indexarr.core.search.errors import SourceFetchError
from indexarr.core.search.models import (
    CanonicalResult,
    FanOutPlan,
    NativeRaw,
    PlanEntry,
    ProxiedRaw,
    RawRecord,
    SourceKind,
)
from indexarr.core.search.normalizer import SearchResultNormalizer

logger = structlog.get_logger("indexarr.search.executor")


class SearchBackend(Protocol):
    """The backend calls the executor needs (implemented by BackendClient)."""

    async def native_search(self, params: dict[str, str]) -> list[Any]: ...

    async def proxied_search(self, source_id: str, params: dict[str, str]) -> list[Any]: ...


class FanOutExecutor:
    """Runs every plan entry concurrently and merges the normalized results.

    A failing entry (transport error, non-2xx, timeout, malformed payload)
    contributes no results and never aborts the others. The merged list is in
    plan order regardless of which call finishes first.
    """

    def __init__(
        self,
        backend: SearchBackend,
        normalizer: SearchResultNormalizer | None = None,
        max_concurrent_sources: int = 8,
        source_timeout: float | None = 30.0,
    ) -> None:
        """Initialize executor.

        Args:
            backend: Backend client used for the calls
            normalizer: Normalizer for raw records (a default one if None)
            max_concurrent_sources: Maximum calls in flight, 0 for unbounded
            source_timeout: Per-source timeout in seconds, None to disable
        """
        self.backend = backend
        self.normalizer = normalizer or SearchResultNormalizer()
        self.max_concurrent_sources = max_concurrent_sources
        self.source_timeout = source_timeout
        self.logger = structlog.get_logger("indexarr.search.executor")

    async def execute(self, plan: FanOutPlan) -> list[CanonicalResult]:
        """Execute a plan.

        Args:
            plan: Fan-out plan from the SelectorResolver

        Returns:
            Merged canonical results in plan order
        """
        semaphore = (
            asyncio.Semaphore(self.max_concurrent_sources)
            if self.max_concurrent_sources > 0
            else None
        )
        start = time.monotonic()

        batches = await asyncio.gather(*(self._run_entry(entry, semaphore) for entry in plan))

        results: list[CanonicalResult] = []
        for batch in batches:
            if batch:
                results.extend(batch)

        duration = time.monotonic() - start
        search_fanout_duration_seconds.observe(duration)
        search_results_total.inc(len(results))
        self.logger.info(
            "Fan-out completed",
            entries=len(plan),
            failed_entries=sum(1 for batch in batches if batch is None),
            total_results=len(results),
            duration_seconds=round(duration, 3),
        )
        return results

    async def _run_entry(
        self,
        entry: PlanEntry,
        semaphore: asyncio.Semaphore | None,
    ) -> list[CanonicalResult] | None:
        source = entry.source_id or "all-native"
        guard: AbstractAsyncContextManager[Any] = semaphore or nullcontext()
        try:
            async with guard:
                payload = await asyncio.wait_for(self._fetch(entry), timeout=self.source_timeout)
            return self.normalizer.normalize_many(self._wrap(entry, payload))
        except SourceFetchError as e:
            self._record_failure(entry, source, str(e), status_code=e.status_code)
        except TimeoutError:
            self._record_failure(entry, source, f"Timed out after {self.source_timeout}s")
        except Exception as e:
            # Malformed payloads and records surface here as ordinary exceptions
            self._record_failure(entry, source, f"{type(e).__name__}: {e}")
        return None

    async def _fetch(self, entry: PlanEntry) -> list[Any]:
        if entry.source_kind is SourceKind.NATIVE:
            return await self.backend.native_search(entry.params)
        if entry.source_id is None:
            raise SourceFetchError("proxied", "Proxied plan entry without a source id")
        return await self.backend.proxied_search(entry.source_id, entry.params)

    def _wrap(self, entry: PlanEntry, payload: list[Any]) -> list[RawRecord]:
        records: list[RawRecord] = []
        skipped = 0
        for item in payload:
            if not isinstance(item, Mapping):
                skipped += 1
                continue
            if entry.source_kind is SourceKind.NATIVE:
                records.append(NativeRaw(payload=item))
            else:
                records.append(
                    ProxiedRaw(
                        payload=item,
                        source_name=entry.source_name,
                        source_id=entry.source_id,
                    )
                )
        if skipped:
            self.logger.warning(
                "Skipped malformed records", source_id=entry.source_id, skipped=skipped
            )
        return records

    def _record_failure(
        self,
        entry: PlanEntry,
        source: str,
        error: str,
        status_code: int | None = None,
    ) -> None:
        search_source_failures_total.labels(kind=entry.source_kind.value).inc()
        self.logger.warning(
            "Source search failed, continuing without it",
            source_id=source,
            source_name=entry.source_name,
            kind=entry.source_kind.value,
            status_code=status_code,
            error=error,
        )
