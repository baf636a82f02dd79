"""Incremental feed sync loop."""

from __future__ import annotations

import time

from feedmirror.cursor_tracker import CursorTracker, PageOutcome
from feedmirror.diagnostics_recorder import PageStats
from feedmirror.lookahead_probe import LookaheadProbe, ProbeHandle, ProbePlan
from feedmirror.models import FeedItem, FeedPage, FeedSyncResult, StopReason
from feedmirror.page_reconciler import extract_page_items, page_time_bounds, reconcile
from feedmirror.progress_estimator import ProgressEstimator
from feedmirror.sync_contexts import FeedSyncContext
from feedmirror.utils import Now
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

MODE_OFF = "off"
MODE_INTERLEAVED = "interleaved"
MODE_BATCH = "batch"


class FeedSyncEngine:
    """Runs one sync: fetch, reconcile, advance the cursor, decide, repeat.

    Pages are processed strictly in order. Page N+1 is requested only after
    page N is written and the cursor persisted. The only concurrent work is
    the look-ahead probe and the enrichment worker pool.
    """

    def __init__(self, context: FeedSyncContext) -> None:
        self._context = context
        self._sleep = context.sleep or time.sleep
        self._probe: ProbeHandle | None = None
        self._batch_games: dict[str, FeedItem] = {}

    def _status(self, message: str) -> None:
        logger.info(message)
        if self._context.on_status is not None:
            self._context.on_status(message)

    def _enrichment_mode(self) -> str:
        if self._context.coordinator is None:
            return MODE_OFF
        return self._context.options.enrichment_mode

    def _start_probe(self, token: str, baseline: int | None) -> None:
        options = self._context.options
        probe = LookaheadProbe(
            self._context.client,
            ProbePlan(
                start_token=token,
                start_page=2,
                max_pages=options.max_pages,
                baseline=baseline,
                auth_token=options.auth_token,
                delay_ms=options.delay_ms,
            ),
        )
        self._probe = probe.start()

    def _enrich_page(self, batch: list[FeedItem], result: FeedSyncResult) -> None:
        mode = self._enrichment_mode()
        if not batch or mode == MODE_OFF:
            return
        if mode == MODE_INTERLEAVED:
            coordinator = self._context.coordinator
            result.details += coordinator.enrich(batch, self._context.options.enrichment)
            return
        for item in batch:
            self._batch_games[item.game_id] = item

    def _enrich_batch(self, result: FeedSyncResult) -> None:
        if self._enrichment_mode() != MODE_BATCH or not self._batch_games:
            return
        result.enriched = self._context.coordinator.enrich(
            list(self._batch_games.values()),
            self._context.options.enrichment,
        )

    def _process_page(
        self,
        page: int,
        feed_page: FeedPage,
        cursor: CursorTracker,
        estimator: ProgressEstimator,
        result: FeedSyncResult,
    ) -> StopReason | None:
        diagnostics = self._context.diagnostics
        extraction = extract_page_items(feed_page.entries, diagnostics, page)
        batch = reconcile(self._context.feed_items, extraction.items)
        newest, oldest = page_time_bounds(batch)
        result.inserted += len(batch)
        result.last_seen_time = cursor.advance(newest)
        estimator.observe_page(newest, oldest)
        diagnostics.record_page(
            PageStats(
                page=page,
                entries=len(feed_page.entries),
                events=extraction.event_count,
                deduped=len(batch),
                dropped=extraction.dropped,
                newest=newest,
                oldest=oldest,
            )
        )
        logger.info(
            "Feed page %s: entries=%s events=%s upserted=%s dropped=%s",
            page,
            len(feed_page.entries),
            extraction.event_count,
            len(batch),
            extraction.dropped,
        )
        self._enrich_page(batch, result)
        self._status(f"Synced {result.inserted} games so far. ETA ~{estimator.eta_label()}")
        return cursor.decide(
            PageOutcome(
                page=page,
                entry_count=len(feed_page.entries),
                next_token=feed_page.pagination_token,
                newest=newest,
            )
        )

    def run(self) -> FeedSyncResult:
        """Run the page loop until a stop condition.

        Returns:
            The run result with counts and the stop reason.

        Raises:
            FeedHttpError: When the feed answers with a non-2xx status.
            requests.RequestException: On network failure.
        """

        context = self._context
        options = context.options
        cursor = CursorTracker.load(context.sync_state, options.max_pages)
        estimator = ProgressEstimator(baseline=cursor.baseline, max_pages=options.max_pages)
        result = FeedSyncResult(last_seen_time=cursor.baseline)
        token: str | None = None
        page = 0
        try:
            while True:
                page += 1
                self._status(f"Feed page {page}/{options.max_pages}... ETA ~{estimator.eta_label()}")
                feed_page = context.client.fetch_page(token, options.auth_token)
                result.feed_pages = page
                reason = self._process_page(page, feed_page, cursor, estimator, result)
                if reason is not None:
                    break
                token = feed_page.pagination_token
                if page == 1 and options.probe_enabled and token:
                    self._start_probe(token, cursor.baseline)
                    estimator.attach_probe(self._probe)
                self._sleep(options.delay_ms / 1000)
            result.stop_reason = reason
            context.diagnostics.record_stop(reason)
            logger.info("Feed sync stopped after page %s: %s", page, reason)
            if reason is StopReason.REACHED_LAST_SEEN and cursor.baseline:
                reached = Now.from_milliseconds(cursor.baseline).isoformat()
                self._status(f"Reached previously synced period ({reached}).")
            self._enrich_batch(result)
            result.total = context.feed_items.count_feed_items()
        except Exception as exc:
            context.diagnostics.record_error(f"{type(exc).__name__}: {exc}")
            raise
        finally:
            if self._probe is not None:
                self._probe.cancel()
            context.sync_state.write_diagnostics(context.diagnostics.snapshot())
        return result
