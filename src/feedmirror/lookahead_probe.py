"""Background walk over future feed pages used only to estimate remaining work."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from threading import Event, Lock, Thread

from feedmirror.dedupe_page_items__sync import _dedupe_page_items
from feedmirror.page_reconciler import extract_page_items, page_time_bounds
from feedmirror.ports.feed_source_client import FeedSourceClient
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)


class ProbeStatus(StrEnum):
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class ProbeSnapshot:
    status: ProbeStatus
    pages: int
    games: int
    error: str | None


@dataclass(slots=True)
class ProbeHandle:
    """Progress shared between the probe thread and the sync loop."""

    status: ProbeStatus = ProbeStatus.RUNNING
    pages: int = 0
    games: int = 0
    error: str | None = None
    _lock: Lock = field(default_factory=Lock, repr=False)
    _cancel: Event = field(default_factory=Event, repr=False)
    _finished: Event = field(default_factory=Event, repr=False)

    def add_page(self, games: int) -> None:
        with self._lock:
            self.pages += 1
            self.games += games

    def finish(self, status: ProbeStatus, error: str | None = None) -> None:
        with self._lock:
            if self.status is ProbeStatus.RUNNING:
                self.status = status
                self.error = error
        self._finished.set()

    def snapshot(self) -> ProbeSnapshot:
        with self._lock:
            return ProbeSnapshot(self.status, self.pages, self.games, self.error)

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the probe finishes; only used by callers that opt in."""

        return self._finished.wait(timeout)

    def pause(self, seconds: float) -> bool:
        """Sleep between pages; returns True when cancelled meanwhile."""

        return self._cancel.wait(seconds)


@dataclass(frozen=True, slots=True)
class ProbePlan:
    start_token: str
    start_page: int
    max_pages: int
    baseline: int | None
    auth_token: str | None = None
    delay_ms: int = 0


class LookaheadProbe:
    """Walks pages ahead of the main loop without persisting anything.

    The walk stops on the same conditions as the sync loop. Failures are
    recorded on the handle and never raised.
    """

    def __init__(self, client: FeedSourceClient, plan: ProbePlan) -> None:
        self._client = client
        self._plan = plan
        self.handle = ProbeHandle()

    def start(self) -> ProbeHandle:
        Thread(target=self.run, name="feed-lookahead-probe", daemon=True).start()
        return self.handle

    def run(self) -> None:
        try:
            self._walk()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Feed look-ahead probe failed: %s", exc)
            self.handle.finish(ProbeStatus.FAILED, str(exc))
            return
        if self.handle.cancelled:
            self.handle.finish(ProbeStatus.CANCELLED)
            return
        snapshot = self.handle.snapshot()
        logger.debug(
            "Look-ahead probe finished: %s pages, %s games",
            snapshot.pages,
            snapshot.games,
        )
        self.handle.finish(ProbeStatus.DONE)

    def _walk(self) -> None:
        plan = self._plan
        token: str | None = plan.start_token
        seen = {plan.start_token}
        page = plan.start_page
        while token and page <= plan.max_pages and not self.handle.cancelled:
            result = self._client.fetch_page(token, plan.auth_token)
            if not result.entries:
                return
            items = _dedupe_page_items(extract_page_items(result.entries).items)
            self.handle.add_page(len(items))
            newest, _ = page_time_bounds(items)
            if plan.baseline and newest is not None and newest <= plan.baseline:
                return
            token = result.pagination_token
            if token in seen:
                return
            if token:
                seen.add(token)
            page += 1
            if plan.delay_ms and self.handle.pause(plan.delay_ms / 1000):
                return
