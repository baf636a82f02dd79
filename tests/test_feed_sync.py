from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import pytest

from feedmirror.config import Settings
from feedmirror.db import DuckDbFeedItemRepository, DuckDbSyncStateRepository, get_connection
from feedmirror.errors import FeedHttpError, SettingsError
from feedmirror.models import EnrichmentCounts, EnrichmentOptions, FeedItem, ModeFamily, StopReason
from feedmirror.pipeline import get_mode_counts, run_feed_sync, sync_feed, sync_feed_with_details
from feedmirror.sync_contexts import FeedSyncRequest
from feedmirror.utils import Now
from tests.http_fakes import FakeFeedClient, FakeResponse, feed_entry, make_fake_get

JAN_2 = 1704153600000
DAY_MS = 24 * 60 * 60 * 1000


def _iso(ms: int) -> str:
    return Now.from_milliseconds(ms).isoformat().replace("+00:00", "Z")


class RecordingCoordinator:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def enrich(self, games: list[FeedItem], options: EnrichmentOptions) -> EnrichmentCounts:
        self.calls.append([game.game_id for game in games])
        return EnrichmentCounts(queued=len(games), ok=len(games))


class FeedSyncTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.settings = Settings(
            duckdb_path=self.tmp_dir / "feedmirror.duckdb",
            probe_enabled=False,
            feed_delay_ms=0,
        )
        self.sleeps: list[float] = []
        self.statuses: list[str] = []

    def _run(self, client: FakeFeedClient, **overrides: object):
        request = FeedSyncRequest(
            settings=self.settings,
            client=client,
            on_status=self.statuses.append,
            **overrides,
        )
        return run_feed_sync(request, sleep=self.sleeps.append)

    def _read_store(self):
        conn = get_connection(self.settings.duckdb_path)
        try:
            items = DuckDbFeedItemRepository(conn).fetch_feed_items()
            state = DuckDbSyncStateRepository(conn)
            return items, state.read_last_seen_time(), state.read_diagnostics()
        finally:
            conn.close()

    def test_single_page_then_empty_page(self) -> None:
        client = FakeFeedClient(
            {
                None: {
                    "entries": [feed_entry("a", "2024-01-02T00:00:00Z", gameMode="Duels")],
                    "paginationToken": "tok1",
                },
                "tok1": {"entries": [], "paginationToken": None},
            }
        )
        result = self._run(client)

        self.assertEqual(result.inserted, 1)
        self.assertEqual(result.total, 1)
        self.assertEqual(result.feed_pages, 2)
        self.assertIs(result.stop_reason, StopReason.EMPTY_PAGE)
        self.assertEqual(result.last_seen_time, JAN_2)
        self.assertEqual(result.minimal(), {"inserted": 1, "total": 1})

        items, last_seen, diagnostics = self._read_store()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].game_id, "a")
        self.assertIs(items[0].mode_family, ModeFamily.DUELS)
        self.assertEqual(items[0].played_at, JAN_2)
        self.assertEqual(last_seen, JAN_2)
        self.assertEqual(diagnostics["stopReason"], "empty_page")
        self.assertEqual(len(diagnostics["pages"]), 2)
        self.assertEqual(client.calls, [(None, None), ("tok1", None)])
        self.assertEqual(self.sleeps, [0.0])

    def test_status_messages(self) -> None:
        client = FakeFeedClient(
            {None: {"entries": [feed_entry("a", "2024-01-02T00:00:00Z")], "paginationToken": None}}
        )
        self._run(client, max_pages=5)

        self.assertTrue(self.statuses[0].startswith("Feed page 1/5... ETA ~"))
        self.assertTrue(self.statuses[1].startswith("Synced 1 games so far. ETA ~"))
        self.assertEqual(len(self.statuses), 2)

    def test_resumes_and_stops_at_previously_synced_period(self) -> None:
        first = FakeFeedClient(
            {None: {"entries": [feed_entry("a", _iso(JAN_2))], "paginationToken": None}}
        )
        self._run(first)

        second = FakeFeedClient(
            {
                None: {
                    "entries": [
                        feed_entry("b", _iso(JAN_2 + 2 * DAY_MS)),
                        feed_entry("c", _iso(JAN_2 + DAY_MS)),
                    ],
                    "paginationToken": "p2",
                },
                "p2": {
                    "entries": [feed_entry("a", _iso(JAN_2)), feed_entry("z", _iso(JAN_2 - DAY_MS))],
                    "paginationToken": "p3",
                },
                "p3": {"entries": [feed_entry("never", _iso(JAN_2 - 9 * DAY_MS))]},
            }
        )
        result = self._run(second)

        self.assertIs(result.stop_reason, StopReason.REACHED_LAST_SEEN)
        self.assertEqual(result.inserted, 4)
        self.assertEqual(result.total, 4)
        self.assertEqual(result.last_seen_time, JAN_2 + 2 * DAY_MS)
        self.assertEqual([call[0] for call in second.calls], [None, "p2"])
        self.assertIn("Reached previously synced period (2024-01-02T00:00:00+00:00).", self.statuses)

    def test_cursor_is_monotonic_across_runs(self) -> None:
        self._run(FakeFeedClient({None: {"entries": [feed_entry("new", _iso(JAN_2))]}}))
        self._run(FakeFeedClient({None: {"entries": [feed_entry("old", _iso(JAN_2 - DAY_MS))]}}))

        _, last_seen, _ = self._read_store()
        self.assertEqual(last_seen, JAN_2)

    def test_repeated_pagination_token_stops_the_run(self) -> None:
        client = FakeFeedClient(
            {
                None: {"entries": [feed_entry("a", _iso(JAN_2))], "paginationToken": "loop"},
                "loop": {"entries": [feed_entry("b", _iso(JAN_2 - DAY_MS))], "paginationToken": "loop"},
            }
        )
        result = self._run(client)

        self.assertIs(result.stop_reason, StopReason.REPEATED_PAGINATION_TOKEN)
        self.assertEqual(result.feed_pages, 2)

    def test_max_pages(self) -> None:
        pages = {
            (None if n == 1 else f"p{n}"): {
                "entries": [feed_entry(f"g{n}", _iso(JAN_2 - n * DAY_MS))],
                "paginationToken": f"p{n + 1}",
            }
            for n in range(1, 6)
        }
        result = self._run(FakeFeedClient(pages), max_pages=3)

        self.assertIs(result.stop_reason, StopReason.MAX_PAGES_REACHED)
        self.assertEqual(result.feed_pages, 3)
        self.assertEqual(result.inserted, 3)

    def test_dropped_events_are_recorded(self) -> None:
        client = FakeFeedClient(
            {
                None: {
                    "entries": [
                        {"payload": '[{"gameId": "a", "time": "2024-01-02T00:00:00Z"}, {"type": "Duels"}]'}
                    ]
                }
            }
        )
        result = self._run(client)

        self.assertEqual(result.inserted, 1)
        _, _, diagnostics = self._read_store()
        self.assertEqual(diagnostics["counters"]["drop_reason"], {"no_game_id": 1})
        self.assertEqual(diagnostics["counters"]["id_source"], {"gameId": 1})
        self.assertEqual(diagnostics["samples"][0]["type_hint"], "Duels")

    def test_feed_error_is_fatal_but_keeps_progress(self) -> None:
        client = FakeFeedClient(
            {
                None: {"entries": [feed_entry("a", _iso(JAN_2))], "paginationToken": "p2"},
                "p2": FeedHttpError(503, "https://example.test/feed?paginationToken=p2"),
            }
        )
        with self.assertRaises(FeedHttpError):
            self._run(client)

        items, last_seen, diagnostics = self._read_store()
        self.assertEqual([item.game_id for item in items], ["a"])
        self.assertEqual(last_seen, JAN_2)
        self.assertIn("Feed HTTP 503", diagnostics["error"])

    def test_interleaved_enrichment_per_page(self) -> None:
        coordinator = RecordingCoordinator()
        client = FakeFeedClient(
            {
                None: {"entries": [feed_entry("a", _iso(JAN_2))], "paginationToken": "p2"},
                "p2": {"entries": [feed_entry("b", _iso(JAN_2 - DAY_MS))]},
            }
        )
        result = self._run(client, enrichment_mode="interleaved", coordinator=coordinator)

        self.assertEqual(coordinator.calls, [["a"], ["b"]])
        self.assertEqual(result.details, EnrichmentCounts(queued=2, ok=2))
        self.assertEqual(result.enriched, EnrichmentCounts())
        self.assertEqual(result.summary()["detailsOk"], 2)
        self.assertEqual(result.summary()["feedUpserted"], 2)

    def test_batch_enrichment_runs_once(self) -> None:
        coordinator = RecordingCoordinator()
        client = FakeFeedClient(
            {
                None: {"entries": [feed_entry("a", _iso(JAN_2))], "paginationToken": "p2"},
                "p2": {"entries": [feed_entry("b", _iso(JAN_2 - DAY_MS))]},
            }
        )
        result = self._run(client, enrichment_mode="batch", coordinator=coordinator)

        self.assertEqual(coordinator.calls, [["a", "b"]])
        self.assertEqual(result.enriched.ok, 2)
        self.assertEqual(result.details, EnrichmentCounts())

    def test_enrichment_off_never_calls_coordinator(self) -> None:
        coordinator = RecordingCoordinator()
        client = FakeFeedClient({None: {"entries": [feed_entry("a", _iso(JAN_2))]}})
        self._run(client, enrichment_mode="off", coordinator=coordinator)

        self.assertEqual(coordinator.calls, [])

    def test_probe_runs_alongside_the_loop(self) -> None:
        client = FakeFeedClient(
            {
                None: {"entries": [feed_entry("a", _iso(JAN_2))], "paginationToken": "p2"},
                "p2": {"entries": [feed_entry("b", _iso(JAN_2 - DAY_MS))]},
            }
        )
        result = self._run(client, probe_enabled=True)

        self.assertIs(result.stop_reason, StopReason.NO_PAGINATION_TOKEN)
        self.assertEqual(result.inserted, 2)
        self.assertIn((None, None), client.calls)


class FacadeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(
            duckdb_path=Path(tempfile.mkdtemp()) / "facade.duckdb",
            feed_url="https://example.test/feed",
            probe_enabled=False,
            feed_delay_ms=0,
        )

    def test_sync_feed_uses_http_client(self) -> None:
        urls: list[str] = []
        fake_get = make_fake_get(
            [
                FakeResponse(
                    json_data={
                        "entries": [{"gameId": "a", "time": "2024-01-02T00:00:00Z", "gameMode": "Duels"}],
                        "paginationToken": "tok1",
                    }
                ),
                FakeResponse(json_data={"entries": [], "paginationToken": None}),
            ],
            captured_urls=urls,
        )
        with (
            patch("feedmirror.feed_clients.feed_page_client.requests.get", side_effect=fake_get),
            patch("feedmirror.feed_sync.time.sleep") as sleep,
        ):
            result = sync_feed(settings=self.settings)

        self.assertEqual(result, {"inserted": 1, "total": 1})
        self.assertEqual(urls, ["https://example.test/feed", "https://example.test/feed?paginationToken=tok1"])
        sleep.assert_called_once_with(0.0)
        self.assertEqual(get_mode_counts(self.settings), [{"mode": "Duels", "count": 1}])

    def test_sync_feed_with_details_defaults_to_interleaved(self) -> None:
        coordinator = RecordingCoordinator()
        client = FakeFeedClient({None: {"entries": [feed_entry("a", _iso(JAN_2))]}})
        summary = sync_feed_with_details(
            FeedSyncRequest(settings=self.settings, client=client, coordinator=coordinator)
        )

        self.assertEqual(coordinator.calls, [["a"]])
        self.assertEqual(summary["feedPages"], 1)
        self.assertEqual(summary["detailsQueued"], 1)
        self.assertEqual(summary["enrichedQueued"], 0)

    def test_sync_feed_with_details_honours_explicit_off(self) -> None:
        coordinator = RecordingCoordinator()
        client = FakeFeedClient({None: {"entries": [feed_entry("a", _iso(JAN_2))]}})
        summary = sync_feed_with_details(
            FeedSyncRequest(
                settings=self.settings,
                client=client,
                coordinator=coordinator,
                enrichment_mode="off",
            )
        )

        self.assertEqual(coordinator.calls, [])
        self.assertEqual(summary["feedUpserted"], 1)
        self.assertEqual(summary["detailsQueued"], 0)


def test_unknown_enrichment_mode_is_rejected(tmp_path: Path) -> None:
    settings = Settings(duckdb_path=tmp_path / "x.duckdb", probe_enabled=False)
    with pytest.raises(SettingsError):
        run_feed_sync(FeedSyncRequest(settings=settings, client=FakeFeedClient({}), enrichment_mode="sometimes"))
