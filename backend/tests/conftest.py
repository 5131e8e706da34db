"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from prometheus_client import REGISTRY

from indexarr.core.search.models import SourceCatalogs, SourceDescriptor, SourceKind


@pytest.fixture(autouse=True)
def reset_prometheus_registry():
    """Reset Prometheus registry before each test to avoid duplicate metric registration.

    setup_metrics() registers the instrumentator's metrics in the global
    registry, so every test that creates an app would otherwise hit
    "Duplicated timeseries" errors.
    """
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        REGISTRY.unregister(collector)

    yield

    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        REGISTRY.unregister(collector)


@pytest.fixture
def catalogs() -> SourceCatalogs:
    """Two native and three proxied sources."""
    return SourceCatalogs(
        native=[
            SourceDescriptor(
                id="nyaa",
                name="Nyaa",
                kind=SourceKind.NATIVE,
                declared_categories=[5070, 2000],
            ),
            SourceDescriptor(id="yts", name="YTS", kind=SourceKind.NATIVE),
        ],
        proxied=[
            SourceDescriptor(id="a", name="Alpha", kind=SourceKind.PROXIED),
            SourceDescriptor(id="b", name="Bravo", kind=SourceKind.PROXIED),
            SourceDescriptor(id="c", name="Charlie", kind=SourceKind.PROXIED),
        ],
    )


@pytest.fixture
def mock_backend() -> MagicMock:
    """Backend collaborator with async search and caps methods.

    Every call returns an empty result set unless a test overrides it.
    """
    backend = MagicMock()
    backend.native_search = AsyncMock(return_value=[])
    backend.proxied_search = AsyncMock(return_value=[])
    backend.proxied_caps = AsyncMock(return_value="<caps><categories/></caps>")
    backend.load_catalogs = AsyncMock(return_value=SourceCatalogs())
    backend.aclose = AsyncMock()
    return backend
