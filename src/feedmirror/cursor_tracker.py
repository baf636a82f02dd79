"""High-water-mark cursor and the page loop termination policy."""

from __future__ import annotations

from dataclasses import dataclass, field

from feedmirror.models import StopReason
from feedmirror.ports.repositories import SyncStateRepository
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class PageOutcome:
    """What the loop learned from one reconciled page."""

    page: int
    entry_count: int
    next_token: str | None
    newest: int | None


@dataclass(slots=True)
class CursorTracker:
    """Run-scoped cursor state.

    ``baseline`` is the mark persisted before the run started and is the only
    value the catch-up check compares against; ``high_water`` tracks what has
    been persisted during this run.
    """

    repository: SyncStateRepository
    max_pages: int
    baseline: int | None = None
    high_water: int | None = None
    seen_tokens: set[str] = field(default_factory=set)

    @classmethod
    def load(cls, repository: SyncStateRepository, max_pages: int) -> CursorTracker:
        baseline = repository.read_last_seen_time()
        return cls(
            repository=repository,
            max_pages=max_pages,
            baseline=baseline,
            high_water=baseline,
        )

    def advance(self, page_newest: int | None) -> int | None:
        """Persist ``max(previous, page_newest)`` and return the stored mark."""

        if page_newest is None:
            return self.high_water
        candidate = page_newest if self.high_water is None else max(self.high_water, page_newest)
        self.high_water = self.repository.write_last_seen_time(candidate)
        return self.high_water

    def decide(self, outcome: PageOutcome) -> StopReason | None:
        """Apply the stop checks in order; record the token and return None to continue."""

        if outcome.entry_count == 0:
            return StopReason.EMPTY_PAGE
        if not outcome.next_token:
            return StopReason.NO_PAGINATION_TOKEN
        if outcome.next_token in self.seen_tokens:
            logger.warning(
                "Feed returned a repeated pagination token on page %s; stopping",
                outcome.page,
            )
            return StopReason.REPEATED_PAGINATION_TOKEN
        if self.baseline and outcome.newest is not None and outcome.newest <= self.baseline:
            return StopReason.REACHED_LAST_SEEN
        if outcome.page >= self.max_pages:
            return StopReason.MAX_PAGES_REACHED
        self.seen_tokens.add(outcome.next_token)
        return None
