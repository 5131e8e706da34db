"""Prometheus metrics configuration."""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from prometheus_client import Counter, Gauge, Histogram
from prometheus_fastapi_instrumentator import Instrumentator

logger = structlog.get_logger("indexarr.metrics")

# Application info
app_info = Gauge(
    "app_info",
    "Application information",
    ["version"],
)

# Search metrics
search_requests_total = Counter(
    "search_requests_total",
    "Total number of submitted searches",
    ["scope"],  # scope: native, proxied, all-native, all
)
search_failures_total = Counter(
    "search_failures_total",
    "Total number of searches that failed before producing results",
)
search_source_failures_total = Counter(
    "search_source_failures_total",
    "Total number of individual source calls that failed and were dropped",
    ["kind"],  # kind: native, proxied
)
search_results_total = Counter(
    "search_results_total",
    "Total number of normalized results produced by fan-outs",
)
search_stale_discarded_total = Counter(
    "search_stale_discarded_total",
    "Total number of fan-out results discarded because a newer search was submitted",
)
search_fanout_duration_seconds = Histogram(
    "search_fanout_duration_seconds",
    "Duration of a complete fan-out in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

# Category resolution metrics
capability_fetch_failures_total = Counter(
    "capability_fetch_failures_total",
    "Total number of proxied capability documents that could not be fetched or parsed",
)


def setup_metrics(app: FastAPI, app_version: str) -> None:
    """Setup Prometheus metrics using prometheus-fastapi-instrumentator.

    Args:
        app: FastAPI application instance
        app_version: Application version
    """
    if getattr(app.state, "_metrics_initialized", False):
        logger.debug("Metrics already initialized for this app instance, skipping")
        return

    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=[
            "/metrics",
            "/docs",
            "/openapi.json",
            "/redoc",
        ],
    )

    # Instrument the app (this adds middleware automatically)
    instrumentator.instrument(app).expose(app, endpoint="/metrics")

    app.state._metrics_initialized = True
    app_info.labels(version=app_version).set(1)

    logger.info("Metrics initialized", version=app_version)
