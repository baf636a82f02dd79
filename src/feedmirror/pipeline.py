"""Public entry points for feed sync runs."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

import duckdb

from feedmirror.config import Settings, get_settings
from feedmirror.db import (
    DuckDbDetailRepository,
    DuckDbFeedItemRepository,
    DuckDbSyncStateRepository,
    get_connection,
    init_schema,
)
from feedmirror.detail_enrichment_service import DetailEnrichmentService
from feedmirror.diagnostics_recorder import DiagnosticsRecorder
from feedmirror.feed_clients import build_client
from feedmirror.feed_sync import MODE_INTERLEAVED, MODE_OFF, FeedSyncEngine
from feedmirror.infra.clients import build_detail_fetcher
from feedmirror.models import FeedSyncResult
from feedmirror.ports.detail_enrichment import DetailEnrichmentCoordinator
from feedmirror.sync_contexts import (
    FeedSyncContext,
    FeedSyncOptions,
    FeedSyncRequest,
    SleepFn,
    StatusCallback,
    resolve_options,
)
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "FeedSyncRequest",
    "get_mode_counts",
    "run_feed_sync",
    "sync_feed",
    "sync_feed_with_details",
]


@contextmanager
def _open_store(settings: Settings) -> Iterator[duckdb.DuckDBPyConnection]:
    conn = get_connection(settings.duckdb_path)
    try:
        init_schema(conn)
        yield conn
    finally:
        conn.close()


def _build_coordinator(
    request: FeedSyncRequest,
    settings: Settings,
    options: FeedSyncOptions,
    conn: duckdb.DuckDBPyConnection,
) -> DetailEnrichmentCoordinator | None:
    if request.coordinator is not None:
        return request.coordinator
    if options.enrichment_mode == MODE_OFF:
        return None
    return DetailEnrichmentService(
        build_detail_fetcher(settings),
        DuckDbDetailRepository(conn),
        max_attempts=settings.detail_max_attempts,
        missing_retry_days=settings.enrichment.missing_retry_days,
        on_status=request.on_status,
    )


def run_feed_sync(
    request: FeedSyncRequest | None = None,
    *,
    sleep: SleepFn | None = None,
) -> FeedSyncResult:
    """Run one incremental feed sync against the configured DuckDB store.

    Args:
        request: Per-run parameters; settings come from the environment when
            the request carries none.
        sleep: Inter-page delay function, ``time.sleep`` by default.

    Returns:
        The `FeedSyncResult` for the run.
    """

    request = request or FeedSyncRequest()
    settings = request.settings or get_settings()
    options = resolve_options(request, settings)
    with _open_store(settings) as conn:
        engine = FeedSyncEngine(
            FeedSyncContext(
                settings=settings,
                options=options,
                client=request.client or build_client(settings),
                feed_items=DuckDbFeedItemRepository(conn),
                sync_state=DuckDbSyncStateRepository(conn),
                diagnostics=DiagnosticsRecorder(settings.diagnostics_sample_cap),
                coordinator=_build_coordinator(request, settings, options, conn),
                on_status=request.on_status,
                sleep=sleep,
            )
        )
        return engine.run()


def sync_feed(
    on_status: StatusCallback | None = None,
    *,
    max_pages: int | None = None,
    delay_ms: int | None = None,
    auth_token: str | None = None,
    settings: Settings | None = None,
) -> dict[str, int]:
    """Feed-only sync returning ``{"inserted", "total"}``."""

    request = FeedSyncRequest(
        settings=settings,
        max_pages=max_pages,
        delay_ms=delay_ms,
        auth_token=auth_token,
        enrichment_mode=MODE_OFF,
        on_status=on_status,
    )
    return run_feed_sync(request).minimal()


def sync_feed_with_details(request: FeedSyncRequest) -> dict[str, int]:
    """Feed sync plus enrichment; ``interleaved`` unless the request names a mode.

    An explicit ``off`` is honoured and runs the feed sync alone.
    """

    if request.enrichment_mode is None:
        request = replace(request, enrichment_mode=MODE_INTERLEAVED)
    result = run_feed_sync(request)
    logger.info("Feed sync with details finished: %s", result.summary())
    return result.summary()


def get_mode_counts(settings: Settings | None = None) -> list[dict[str, object]]:
    """Return stored rows grouped by raw game mode, most common first."""

    settings = settings or get_settings()
    with _open_store(settings) as conn:
        return DuckDbFeedItemRepository(conn).fetch_mode_counts()
