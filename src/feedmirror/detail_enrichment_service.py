"""Bounded-concurrency detail enrichment for newly synced games."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed

import requests
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from feedmirror.errors import DetailFetchError
from feedmirror.models import (
    DetailFetchResult,
    DetailStatus,
    EnrichmentCounts,
    EnrichmentOptions,
    FeedItem,
    GameDetail,
)
from feedmirror.plan_detail_queue__enrichment import _plan_detail_queue
from feedmirror.ports.detail_enrichment import DetailFetcher
from feedmirror.ports.repositories import DetailRepository
from feedmirror.utils import Now
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

StatusCallback = Callable[[str], None]


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, DetailFetchError):
        return exc.transient
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


class DetailEnrichmentService:
    """Fetches details on a worker pool and records outcomes per game.

    Fetches run on worker threads; every repository write happens on the
    calling thread as results complete.
    """

    def __init__(
        self,
        fetcher: DetailFetcher,
        repository: DetailRepository,
        *,
        max_attempts: int = 3,
        missing_retry_days: int = 7,
        wait: wait_base | None = None,
        on_status: StatusCallback | None = None,
        clock: Callable[[], int] = Now.as_milliseconds,
    ) -> None:
        self._fetcher = fetcher
        self._repository = repository
        self._max_attempts = max(1, max_attempts)
        self._missing_retry_days = missing_retry_days
        self._wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=10)
        self._on_status = on_status
        self._clock = clock

    def _status(self, message: str) -> None:
        logger.info(message)
        if self._on_status is not None:
            self._on_status(message)

    def _fetch_with_retry(self, game: FeedItem, auth_token: str | None) -> DetailFetchResult:
        fetch = retry(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )(self._fetcher.fetch_detail)
        return fetch(game, auth_token)

    def _ok_detail(self, game: FeedItem, result: DetailFetchResult) -> GameDetail:
        return GameDetail(
            game_id=game.game_id,
            status=DetailStatus.OK,
            fetched_at=self._clock(),
            endpoint=result.endpoint,
            mode_family=game.mode_family,
            game_mode=game.game_mode,
            total_rounds=result.total_rounds,
            round_count=result.round_count,
            raw=result.payload,
        )

    def _failed_detail(self, game: FeedItem, exc: Exception) -> GameDetail:
        unavailable = isinstance(exc, DetailFetchError) and exc.unavailable
        return GameDetail(
            game_id=game.game_id,
            status=DetailStatus.MISSING if unavailable else DetailStatus.ERROR,
            fetched_at=self._clock(),
            error=str(exc),
            mode_family=game.mode_family,
            game_mode=game.game_mode,
        )

    def enrich(self, games: list[FeedItem], options: EnrichmentOptions) -> EnrichmentCounts:
        """Fetch details for the games that need them.

        Args:
            games: Newly written feed items.
            options: Concurrency, retry and verification flags.

        Returns:
            Counts of queued, ok, failed and skipped games. Unavailable
            details are stored as ``missing`` and counted as skipped.
        """

        if not games:
            return EnrichmentCounts()
        stored = self._repository.fetch_details([game.game_id for game in games])
        queue = _plan_detail_queue(
            games,
            stored,
            now_ms=self._clock(),
            retry_errors=options.retry_errors,
            verify_completeness=options.verify_completeness,
            missing_retry_days=self._missing_retry_days,
        )
        counts = EnrichmentCounts(queued=len(queue.queued), skipped=len(queue.skipped))
        if not queue.queued:
            return counts
        self._status(f"Fetching details for {len(queue.queued)} duel games...")
        with ThreadPoolExecutor(max_workers=options.concurrency) as pool:
            futures = {
                pool.submit(self._fetch_with_retry, game, options.auth_token): game
                for game in queue.queued
            }
            for future in as_completed(futures):
                game = futures[future]
                try:
                    detail = self._ok_detail(game, future.result())
                    counts.ok += 1
                except (DetailFetchError, requests.RequestException) as exc:
                    detail = self._failed_detail(game, exc)
                    if detail.status is DetailStatus.MISSING:
                        counts.skipped += 1
                    else:
                        counts.fail += 1
                        logger.warning("Detail fetch failed for %s: %s", game.game_id, exc)
                self._repository.upsert_details([detail])
        self._status(f"Details done. ok={counts.ok}, fail={counts.fail}, skipped={counts.skipped}")
        return counts
