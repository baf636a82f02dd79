"""Public exports for feed client abstractions."""

from __future__ import annotations

from feedmirror.feed_clients.base_feed_client import BaseFeedClient, BaseFeedClientContext
from feedmirror.feed_clients.feed_page_client import (
    FeedPageClient,
    FeedPageClientContext,
    build_client,
)

__all__ = [
    "BaseFeedClient",
    "BaseFeedClientContext",
    "FeedPageClient",
    "FeedPageClientContext",
    "build_client",
]
