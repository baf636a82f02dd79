"""Timestamp parsing for feed event time fields."""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


def _parse_iso_time(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_http_date(value: str) -> datetime | None:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_feed_time_ms(value: object) -> int | None:
    """Parse a feed time string into epoch milliseconds.

    Args:
        value: Raw time candidate.

    Returns:
        Epoch milliseconds, or None when the value is not a parseable string.
    """

    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if not normalized:
        return None
    for parser in (_parse_iso_time, _parse_http_date):
        parsed = parser(normalized)
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return int(parsed.timestamp() * 1000)
    return None
