"""Result models for feed sync runs."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from feedmirror.models.enrichment import EnrichmentCounts


class StopReason(StrEnum):
    """Why a page loop stopped, in evaluation order."""

    EMPTY_PAGE = "empty_page"
    NO_PAGINATION_TOKEN = "no_pagination_token"
    REPEATED_PAGINATION_TOKEN = "repeated_pagination_token"
    REACHED_LAST_SEEN = "reached_last_seen"
    MAX_PAGES_REACHED = "max_pages_reached"


class FeedSyncResult(BaseModel):
    """Outcome of one feed sync run.

    Attributes:
        inserted: Rows written across all pages (after dedupe).
        total: Rows in the store after the run.
        feed_pages: Pages fetched.
        stop_reason: Loop termination reason.
        last_seen_time: High-water mark after the run.
        details: Counts from per-page (interleaved) enrichment.
        enriched: Counts from end-of-run (batch) enrichment.
    """

    inserted: int = 0
    total: int = 0
    feed_pages: int = 0
    stop_reason: StopReason | None = None
    last_seen_time: int | None = None
    details: EnrichmentCounts = Field(default_factory=EnrichmentCounts)
    enriched: EnrichmentCounts = Field(default_factory=EnrichmentCounts)

    def minimal(self) -> dict[str, int]:
        return {"inserted": self.inserted, "total": self.total}

    def summary(self) -> dict[str, int]:
        return {
            "feedPages": self.feed_pages,
            "feedUpserted": self.inserted,
            "detailsQueued": self.details.queued,
            "detailsOk": self.details.ok,
            "detailsFail": self.details.fail,
            "detailsSkipped": self.details.skipped,
            "enrichedQueued": self.enriched.queued,
            "enrichedOk": self.enriched.ok,
            "enrichedFail": self.enriched.fail,
            "enrichedSkipped": self.enriched.skipped,
        }
