"""Tests for metrics functionality."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from indexarr.app import create_app
from indexarr.core import metrics
from indexarr.core.config import Settings
from indexarr.core.search.errors import SourceFetchError
from indexarr.core.search.executor import FanOutExecutor
from indexarr.core.search.models import AllProxied, SourceCatalogs
from indexarr.core.search.selector import SelectorResolver


@pytest.fixture
def client() -> TestClient:
    app = create_app(Settings(env="testing"))
    return TestClient(app)


def test_metrics_endpoint(client: TestClient) -> None:
    """Test Prometheus metrics endpoint exists and returns metrics."""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]

    content = response.text
    assert "http_requests_total" in content or "http_request_duration" in content
    assert "HELP" in content
    assert "TYPE" in content


def test_metrics_collect_after_request(client: TestClient) -> None:
    client.get("/api/health")

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "/api/health" in response.text


def test_setup_metrics_is_idempotent(client: TestClient) -> None:
    metrics.setup_metrics(client.app, "0.1.0")  # type: ignore[arg-type]
    assert client.get("/metrics").status_code == 200


async def test_source_failures_are_counted(
    catalogs: SourceCatalogs, mock_backend: MagicMock
) -> None:
    mock_backend.proxied_search = AsyncMock(
        side_effect=SourceFetchError("x", "HTTP 500 error", status_code=500)
    )
    counter = metrics.search_source_failures_total.labels(kind="proxied")
    before = counter._value.get()

    plan = SelectorResolver(catalogs).resolve(AllProxied(), "q")
    await FanOutExecutor(mock_backend).execute(plan)

    assert counter._value.get() == before + 3
