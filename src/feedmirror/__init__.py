"""FEEDMIRROR package entrypoints."""

from feedmirror.models import FeedItem, FeedSyncResult, ModeFamily, StopReason
from feedmirror.pipeline import get_mode_counts, run_feed_sync, sync_feed, sync_feed_with_details
from feedmirror.sync_contexts import FeedSyncRequest


def main() -> None:
    """Run a single feed sync with settings from the environment."""
    result = run_feed_sync(FeedSyncRequest())
    print(result.summary())


__all__ = [
    "FeedItem",
    "FeedSyncRequest",
    "FeedSyncResult",
    "ModeFamily",
    "StopReason",
    "get_mode_counts",
    "main",
    "run_feed_sync",
    "sync_feed",
    "sync_feed_with_details",
]
