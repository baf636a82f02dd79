"""Turn one page of feed entries into deduplicated, persisted feed items."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from feedmirror.dedupe_page_items__sync import _dedupe_page_items
from feedmirror.diagnostics_recorder import DiagnosticsRecorder
from feedmirror.feed_events import (
    describe_dropped_event,
    extract_events,
    extract_game_id,
    extract_game_mode,
    extract_played_at_ms,
)
from feedmirror.mode_classifier import classify, extract_type_hint, game_type_for
from feedmirror.models import ExtractedEvent, FeedItem, ModeFamily
from feedmirror.ports.repositories import FeedItemRepository
from feedmirror.utils import Now
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

NO_GAME_ID = "no_game_id"


@dataclass(slots=True)
class PageExtraction:
    """Events extracted from one page, before dedupe."""

    events: list[ExtractedEvent] = field(default_factory=list)
    event_count: int = 0
    dropped: int = 0

    @property
    def items(self) -> list[FeedItem]:
        return [event.item for event in self.events]


def extract_event_item(event: object, entry: object, now_ms: int) -> ExtractedEvent | None:
    """Build a feed item for one raw event, or None when it has no game id."""

    match = extract_game_id(event)
    if match is None:
        return None
    game_id, id_source = match
    played_at, parsed = extract_played_at_ms(event, entry, now_ms)
    game_mode = extract_game_mode(event, entry)
    family = classify(event, game_mode)
    item = FeedItem(
        game_id=game_id,
        played_at=played_at,
        mode_family=family,
        game_mode=game_mode,
        game_type=game_type_for(family),
        is_team_duels=family is ModeFamily.TEAMDUELS,
        raw_event=event,
    )
    return ExtractedEvent(item=item, id_source=id_source, time_parsed=parsed)


def extract_page_items(
    entries: Iterable[object],
    diagnostics: DiagnosticsRecorder | None = None,
    page: int = 0,
) -> PageExtraction:
    """Extract and classify every event on a page.

    Events without a game id are dropped and recorded under ``no_game_id``.
    All events on a page share one fallback time.
    """

    now_ms = Now.as_milliseconds()
    extraction = PageExtraction()
    for entry in entries:
        for event in extract_events(entry):
            extraction.event_count += 1
            extracted = extract_event_item(event, entry, now_ms)
            if extracted is None:
                extraction.dropped += 1
                logger.debug("Dropped feed event without game id on page %s", page)
                if diagnostics is not None:
                    diagnostics.record_drop(
                        NO_GAME_ID,
                        page=page,
                        drop_type=extract_type_hint(event),
                        context=describe_dropped_event(event, entry),
                    )
                continue
            if diagnostics is not None:
                diagnostics.record_id_source(extracted.id_source)
                if not extracted.time_parsed:
                    diagnostics.count("time_source", "fallback_now")
            extraction.events.append(extracted)
    return extraction


def reconcile(repository: FeedItemRepository, items: list[FeedItem]) -> list[FeedItem]:
    """Dedupe a page's items and upsert them as a single batch.

    Returns:
        The deduplicated batch that was written.
    """

    batch = _dedupe_page_items(items)
    if batch:
        repository.upsert_feed_items(batch)
    return batch


def page_time_bounds(items: list[FeedItem]) -> tuple[int | None, int | None]:
    """Return the newest and oldest ``played_at`` in a batch."""

    if not items:
        return None, None
    times = [item.played_at for item in items]
    return max(times), min(times)
