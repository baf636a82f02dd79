"""Extraction of raw events and their fields from feed entries."""

from __future__ import annotations

from collections.abc import Mapping

from feedmirror.field_access import (
    FieldAccessor,
    first_match,
    first_value,
    get_by_path,
    text_accessors,
    value_at,
)
from feedmirror.mode_classifier import extract_type_hint
from feedmirror.parse_feed_time__feed_events import _parse_feed_time_ms
from feedmirror.parse_payload_array__feed_events import _parse_payload_array
from feedmirror.utils import Now

GAME_ID_PATHS = ("payload.gameId", "gameId", "id", "payload.id")
GAME_ID_ACCESSORS = text_accessors(GAME_ID_PATHS)
TIME_ACCESSORS: tuple[FieldAccessor[object], ...] = (
    value_at("time"),
    value_at("createdAt"),
    value_at("payload.time"),
)
MODE_PATHS = (
    "payload.gameMode",
    "payload.competitiveGameMode",
    "gameMode",
    "competitiveGameMode",
    "mode",
)
MODE_ACCESSORS = text_accessors(MODE_PATHS)

_SAMPLE_TEXT_LIMIT = 120


def extract_events(entry: object) -> list[object]:
    """Return the raw events carried by one feed entry.

    Args:
        entry: One element of the page's ``entries`` array.

    Returns:
        Events from the entry payload, or the entry itself as a single bare
        event when the payload holds no events. Scalars yield no events.
    """

    if isinstance(entry, Mapping):
        payload_events = _parse_payload_array(entry.get("payload"))
        if payload_events:
            return payload_events
        return [entry]
    # Arrays are bare events too; they drop under no_game_id.
    if isinstance(entry, list):
        return [entry]
    return []


def extract_game_id(event: object) -> tuple[str, str] | None:
    """Return the game id and the path it was found at."""

    return first_match(event, GAME_ID_ACCESSORS)


def time_candidate(event: object, entry: object) -> object | None:
    candidate = first_value(event, TIME_ACCESSORS)
    if candidate is None:
        candidate = get_by_path(entry, "time")
    return candidate


def extract_played_at_ms(
    event: object,
    entry: object,
    now_ms: int | None = None,
) -> tuple[int, bool]:
    """Resolve the event time in epoch milliseconds.

    An unparseable or missing time falls back to the current time, which makes
    the event look newest.

    Args:
        event: Raw event.
        entry: Parent feed entry.
        now_ms: Fallback time; defaults to the current time.

    Returns:
        Tuple of timestamp and whether it was parsed from the feed.
    """

    parsed = _parse_feed_time_ms(time_candidate(event, entry))
    if parsed is not None:
        return parsed, True
    return (Now.as_milliseconds() if now_ms is None else now_ms), False


def extract_game_mode(event: object, entry: object) -> str | None:
    mode = first_value(event, MODE_ACCESSORS)
    if mode is None and entry is not event:
        mode = first_value(entry, MODE_ACCESSORS)
    return mode


def _sample_text(value: object) -> object:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    text = repr(value) if not isinstance(value, str) else value
    return text[:_SAMPLE_TEXT_LIMIT]


def describe_dropped_event(event: object, entry: object) -> dict[str, object]:
    """Build a compact diagnostic sample for an event without a game id."""

    return {
        "path_candidates": {path: _sample_text(get_by_path(event, path)) for path in GAME_ID_PATHS},
        "type_hint": extract_type_hint(event),
        "time_candidate": _sample_text(time_candidate(event, entry)),
        "event_keys": sorted(event.keys())[:20] if isinstance(event, Mapping) else None,
        "event_type": type(event).__name__,
    }
