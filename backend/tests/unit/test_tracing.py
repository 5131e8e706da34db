"""Tests for tracing functionality."""

from __future__ import annotations

import io
import json
import sys

import structlog

from indexarr.core.logging import setup_logging
from indexarr.core.tracing import (
    clear_trace_id,
    generate_trace_id,
    get_trace_id,
    set_trace_id,
    trace_context,
)


def test_generate_trace_id() -> None:
    trace_id = generate_trace_id()

    assert isinstance(trace_id, str)
    assert len(trace_id) == 32
    assert trace_id.isalnum()

    ids = {generate_trace_id() for _ in range(100)}
    assert len(ids) == 100, "Trace IDs should be unique"


def test_set_and_get_trace_id() -> None:
    clear_trace_id()

    set_trace_id("test-trace-123")
    assert get_trace_id() == "test-trace-123"

    clear_trace_id()
    assert get_trace_id() is None


def test_clear_trace_id_keeps_other_context() -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(search_sequence=3)
    set_trace_id("abc")

    clear_trace_id()

    assert get_trace_id() is None
    assert structlog.contextvars.get_contextvars() == {"search_sequence": 3}
    structlog.contextvars.clear_contextvars()


def test_trace_context_generates_id() -> None:
    clear_trace_id()

    with trace_context() as trace_id:
        assert len(trace_id) == 32
        assert get_trace_id() == trace_id

    assert get_trace_id() is None


def test_trace_context_nested() -> None:
    clear_trace_id()

    with trace_context("outer-trace"):
        assert get_trace_id() == "outer-trace"

        with trace_context("inner-trace") as inner_id:
            assert get_trace_id() == "inner-trace"
            assert inner_id == "inner-trace"

        assert get_trace_id() == "outer-trace"

    assert get_trace_id() is None


def test_trace_id_in_logs() -> None:
    old_stdout = sys.stdout
    sys.stdout = io.StringIO()

    try:
        setup_logging(debug=False)

        with trace_context("test-log-trace-789"):
            structlog.get_logger("test.logger").info("Test message", key="value")

        output = sys.stdout.getvalue()
    finally:
        sys.stdout = old_stdout

    json_lines = [line for line in output.splitlines() if line.strip().startswith("{")]
    log_data = json.loads(json_lines[-1])
    assert log_data["trace_id"] == "test-log-trace-789"
