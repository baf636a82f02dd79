from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from feedmirror.config import ENRICHMENT_MODES, Settings
from feedmirror.diagnostics_recorder import DiagnosticsRecorder
from feedmirror.errors import SettingsError
from feedmirror.models import EnrichmentOptions
from feedmirror.ports.detail_enrichment import DetailEnrichmentCoordinator
from feedmirror.ports.feed_source_client import FeedSourceClient
from feedmirror.ports.repositories import FeedItemRepository, SyncStateRepository

StatusCallback = Callable[[str], None]
SleepFn = Callable[[float], None]


@dataclass(frozen=True)
class FeedSyncRequest:
    """Per-run parameters; unset fields fall back to `Settings`."""

    settings: Settings | None = None
    max_pages: int | None = None
    delay_ms: int | None = None
    auth_token: str | None = None
    enrichment_mode: str | None = None
    concurrency: int | None = None
    retry_errors: bool | None = None
    verify_completeness: bool | None = None
    probe_enabled: bool | None = None
    on_status: StatusCallback | None = None
    client: FeedSourceClient | None = None
    coordinator: DetailEnrichmentCoordinator | None = None


@dataclass(frozen=True)
class FeedSyncOptions:
    max_pages: int
    delay_ms: int
    auth_token: str | None
    enrichment_mode: str
    enrichment: EnrichmentOptions
    probe_enabled: bool


@dataclass(frozen=True)
class FeedSyncContext:
    settings: Settings
    options: FeedSyncOptions
    client: FeedSourceClient
    feed_items: FeedItemRepository
    sync_state: SyncStateRepository
    diagnostics: DiagnosticsRecorder
    coordinator: DetailEnrichmentCoordinator | None = None
    on_status: StatusCallback | None = None
    sleep: SleepFn | None = None


def _pick[T](value: T | None, fallback: T) -> T:
    return fallback if value is None else value


def resolve_options(request: FeedSyncRequest, settings: Settings) -> FeedSyncOptions:
    """Merge request overrides over settings."""

    auth_token = _pick(request.auth_token, settings.feed_auth_token)
    enrichment_mode = _pick(request.enrichment_mode, settings.enrichment_mode)
    if enrichment_mode not in ENRICHMENT_MODES:
        raise SettingsError(f"Unknown enrichment mode {enrichment_mode!r}")
    return FeedSyncOptions(
        max_pages=max(1, _pick(request.max_pages, settings.feed_max_pages)),
        delay_ms=max(0, _pick(request.delay_ms, settings.feed_delay_ms)),
        auth_token=auth_token,
        enrichment_mode=enrichment_mode,
        enrichment=EnrichmentOptions(
            concurrency=max(1, _pick(request.concurrency, settings.enrichment_concurrency)),
            retry_errors=_pick(request.retry_errors, settings.enrichment_retry_errors),
            verify_completeness=_pick(
                request.verify_completeness,
                settings.enrichment_verify_completeness,
            ),
            auth_token=auth_token,
        ),
        probe_enabled=_pick(request.probe_enabled, settings.probe_enabled),
    )
