"""Port interfaces for the detail enrichment stage."""

# pylint: disable=too-few-public-methods

from __future__ import annotations

from typing import Protocol

from feedmirror.models import (
    DetailFetchResult,
    EnrichmentCounts,
    EnrichmentOptions,
    FeedItem,
)


class DetailEnrichmentCoordinator(Protocol):
    """Enriches newly written feed items with per-game details."""

    def enrich(self, games: list[FeedItem], options: EnrichmentOptions) -> EnrichmentCounts:
        """Run a bounded-concurrency fetch/retry/verify cycle and report counts."""


class DetailFetcher(Protocol):
    """Fetches the detail payload for one game."""

    def fetch_detail(self, game: FeedItem, auth_token: str | None = None) -> DetailFetchResult:
        """Return the detail payload or raise `DetailFetchError`."""
