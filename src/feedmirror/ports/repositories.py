"""Repository port interfaces for database access boundaries."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from feedmirror.models import FeedItem, GameDetail


class FeedItemRepository(Protocol):
    """Repository interface for mirrored feed rows."""

    def upsert_feed_items(self, items: Iterable[FeedItem]) -> int:
        """Replace rows by game id and return the number written."""

    def fetch_feed_item(self, game_id: str) -> FeedItem | None:
        """Return the stored row for a game id."""

    def count_feed_items(self) -> int:
        """Return the number of stored rows."""

    def fetch_mode_counts(self) -> list[dict[str, object]]:
        """Return row counts grouped by raw game mode."""


class SyncStateRepository(Protocol):
    """Repository interface for the cursor and diagnostics records."""

    def read_last_seen_time(self) -> int | None:
        """Return the persisted high-water mark."""

    def write_last_seen_time(self, last_seen_time: int) -> int:
        """Persist the high-water mark without lowering it; return the stored value."""

    def read_diagnostics(self) -> dict[str, object] | None:
        """Return the last diagnostics snapshot."""

    def write_diagnostics(self, snapshot: dict[str, object]) -> None:
        """Overwrite the diagnostics snapshot."""


class DetailRepository(Protocol):
    """Repository interface for enrichment detail status."""

    def fetch_details(self, game_ids: list[str]) -> dict[str, GameDetail]:
        """Return stored details keyed by game id."""

    def upsert_details(self, details: Iterable[GameDetail]) -> int:
        """Replace detail rows and return the number written."""
