"""Shared utility functions for Indexarr."""

from __future__ import annotations

from datetime import UTC, datetime

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

# Formats tried after ISO-8601, in order
_DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S %z",  # RFC 2822
    "%a, %d %b %Y %H:%M:%S %Z",  # RFC 2822 with timezone name
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


def parse_date(date_str: str | None) -> datetime | None:
    """Parse a date string to a timezone-aware datetime.

    Naive values are assumed to be UTC.

    Args:
        date_str: Date string in ISO-8601, RFC 2822 or a plain date format

    Returns:
        Parsed datetime or None if parsing fails
    """
    if not date_str:
        return None

    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(date_str.strip().replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(date_str.strip(), fmt)
                break
            except (ValueError, AttributeError):
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_epoch_ms(date_str: str | None) -> int:
    """Convert a date string to epoch milliseconds, 0 when unparsable."""
    parsed = parse_date(date_str)
    if parsed is None:
        return 0
    return int(parsed.timestamp() * 1000)


def format_size(num_bytes: int | float | None) -> str:
    """Format a byte count as a human readable size (1024 based).

    Args:
        num_bytes: Size in bytes

    Returns:
        Size with one decimal and unit (e.g. "1.5 GB"), or "-" when zero/missing
    """
    if not num_bytes:
        return "-"
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {SIZE_UNITS[unit]}"


def format_date(date_str: str | None) -> str:
    """Format a date string as YYYY-MM-DD.

    Returns "-" for empty input and the input unchanged when it cannot be parsed.
    """
    if not date_str:
        return "-"
    parsed = parse_date(date_str)
    if parsed is None:
        return date_str
    return parsed.date().isoformat()
