"""Pydantic models shared across feedmirror."""

from feedmirror.models.enrichment import (
    DetailFetchResult,
    DetailStatus,
    EnrichmentCounts,
    EnrichmentOptions,
    GameDetail,
)
from feedmirror.models.feed_item import ExtractedEvent, FeedItem
from feedmirror.models.feed_page import FeedPage
from feedmirror.models.mode_family import GameType, ModeFamily
from feedmirror.models.sync_result import FeedSyncResult, StopReason

__all__ = [
    "DetailFetchResult",
    "DetailStatus",
    "EnrichmentCounts",
    "EnrichmentOptions",
    "ExtractedEvent",
    "FeedItem",
    "FeedPage",
    "FeedSyncResult",
    "GameDetail",
    "GameType",
    "ModeFamily",
    "StopReason",
]
