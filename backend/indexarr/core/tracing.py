"""Request and search correlation ids using structlog contextvars."""

from __future__ import annotations

import uuid
from collections.abc import Generator
from contextlib import contextmanager

import structlog.contextvars as contextvars


def generate_trace_id() -> str:
    """Generate a unique trace ID.

    Returns:
        Hexadecimal trace ID (32 characters)
    """
    return uuid.uuid4().hex


def get_trace_id() -> str | None:
    """Get the current trace ID from context, or None if not set."""
    return contextvars.get_contextvars().get("trace_id")


def set_trace_id(trace_id: str) -> None:
    contextvars.bind_contextvars(trace_id=trace_id)


def clear_trace_id() -> None:
    contextvars.unbind_contextvars("trace_id")


@contextmanager
def trace_context(trace_id: str | None = None) -> Generator[str]:
    """Bind a trace ID for the duration of a block.

    Any context bound before entering is restored on exit, so a search
    running inside a request keeps its request trace_id afterwards.

    Args:
        trace_id: Trace ID to use. A new one is generated when None.

    Yields:
        The trace ID in effect inside the block
    """
    previous = dict(contextvars.get_contextvars())

    if trace_id is None:
        trace_id = generate_trace_id()

    contextvars.clear_contextvars()
    contextvars.bind_contextvars(trace_id=trace_id)

    try:
        yield trace_id
    finally:
        contextvars.clear_contextvars()
        if previous:
            contextvars.bind_contextvars(**previous)
