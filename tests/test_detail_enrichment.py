from __future__ import annotations

import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

import requests
from tenacity import wait_none

from feedmirror.config import Settings
from feedmirror.db import DuckDbDetailRepository, get_connection, init_schema
from feedmirror.detail_enrichment_service import DetailEnrichmentService
from feedmirror.errors import DetailFetchError
from feedmirror.infra.clients.detail_client import (
    build_detail_fetcher,
    count_rounds,
    declared_total_rounds,
)
from feedmirror.models import (
    DetailFetchResult,
    DetailStatus,
    EnrichmentCounts,
    EnrichmentOptions,
    FeedItem,
    GameDetail,
    ModeFamily,
)
from feedmirror.plan_detail_queue__enrichment import DAY_MS, _plan_detail_queue
from tests.http_fakes import FakeResponse, make_fake_get

NOW = 1_800_000_000_000


def _duel(game_id: str, family: ModeFamily = ModeFamily.DUELS, mode: str | None = "Duels") -> FeedItem:
    return FeedItem(game_id=game_id, played_at=1, mode_family=family, game_mode=mode)


class PlanDetailQueueTests(unittest.TestCase):
    def _plan(self, games: list[FeedItem], stored: dict[str, GameDetail], **flags: bool):
        return _plan_detail_queue(games, stored, now_ms=NOW, **flags)

    def test_only_duel_games_are_candidates(self) -> None:
        games = [
            _duel("d1"),
            _duel("t1", ModeFamily.TEAMDUELS, "TeamDuels"),
            _duel("o1", ModeFamily.OTHER, "RankedDuelsBeta"),
            _duel("s1", ModeFamily.STANDARD, "Standard"),
        ]
        queue = self._plan(games, {})

        self.assertEqual([game.game_id for game in queue.queued], ["d1", "t1", "o1"])
        self.assertEqual([game.game_id for game in queue.skipped], ["s1"])

    def test_incomplete_ok_detail_is_refetched_when_verifying(self) -> None:
        stored = {
            "d1": GameDetail(game_id="d1", status=DetailStatus.OK, total_rounds=5, round_count=3),
            "d2": GameDetail(game_id="d2", status=DetailStatus.OK, total_rounds=5, round_count=5),
            "d3": GameDetail(game_id="d3", status=DetailStatus.OK, round_count=0),
        }
        games = [_duel("d1"), _duel("d2"), _duel("d3")]

        verifying = self._plan(games, stored, verify_completeness=True)
        self.assertEqual([game.game_id for game in verifying.queued], ["d1", "d3"])

        trusting = self._plan(games, stored, verify_completeness=False)
        self.assertEqual(trusting.queued, [])

    def test_missing_detail_is_rechecked_after_a_week(self) -> None:
        stored = {
            "recent": GameDetail(game_id="recent", status=DetailStatus.MISSING, fetched_at=NOW - DAY_MS),
            "stale": GameDetail(game_id="stale", status=DetailStatus.MISSING, fetched_at=NOW - 7 * DAY_MS),
        }
        queue = self._plan([_duel("recent"), _duel("stale")], stored)
        self.assertEqual([game.game_id for game in queue.queued], ["stale"])

    def test_errors_are_retried_only_when_asked(self) -> None:
        stored = {"e1": GameDetail(game_id="e1", status=DetailStatus.ERROR)}
        self.assertEqual(len(self._plan([_duel("e1")], stored, retry_errors=True).queued), 1)
        self.assertEqual(len(self._plan([_duel("e1")], stored, retry_errors=False).skipped), 1)

    def test_duplicate_games_are_planned_once(self) -> None:
        queue = self._plan([_duel("d1"), _duel("d1")], {})
        self.assertEqual(len(queue.queued), 1)


class ScriptedFetcher:
    def __init__(self, outcomes: dict[str, list[object]]) -> None:
        self.outcomes = outcomes
        self.calls: list[str] = []
        self.threads: set[str] = set()
        self._lock = threading.Lock()

    def fetch_detail(self, game: FeedItem, auth_token: str | None = None) -> DetailFetchResult:
        with self._lock:
            self.calls.append(game.game_id)
            self.threads.add(threading.current_thread().name)
            outcome = self.outcomes[game.game_id].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _ok(game_id: str, rounds: int = 5) -> DetailFetchResult:
    return DetailFetchResult(
        endpoint=f"https://example.test/duels/{game_id}",
        payload={"rounds": list(range(rounds))},
        total_rounds=rounds,
        round_count=rounds,
    )


class DetailEnrichmentServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp_dir = Path(tempfile.mkdtemp())
        self.conn = get_connection(tmp_dir / "enrich.duckdb")
        init_schema(self.conn)
        self.repo = DuckDbDetailRepository(self.conn)
        self.statuses: list[str] = []

    def tearDown(self) -> None:
        self.conn.close()

    def _service(self, fetcher: ScriptedFetcher, max_attempts: int = 3) -> DetailEnrichmentService:
        return DetailEnrichmentService(
            fetcher,
            self.repo,
            max_attempts=max_attempts,
            wait=wait_none(),
            on_status=self.statuses.append,
            clock=lambda: NOW,
        )

    def test_counts_and_stored_statuses(self) -> None:
        fetcher = ScriptedFetcher(
            {
                "ok": [_ok("ok")],
                "gone": [DetailFetchError("gone", ["x -> HTTP 404"], [404])],
                "broken": [DetailFetchError("broken", ["x -> HTTP 400"], [400])],
            }
        )
        games = [_duel("ok"), _duel("gone"), _duel("broken"), _duel("std", ModeFamily.STANDARD, "Standard")]

        counts = self._service(fetcher).enrich(games, EnrichmentOptions(concurrency=2))

        self.assertEqual(counts, EnrichmentCounts(queued=3, ok=1, fail=1, skipped=2))
        stored = self.repo.fetch_details(["ok", "gone", "broken", "std"])
        self.assertIs(stored["ok"].status, DetailStatus.OK)
        self.assertEqual(stored["ok"].round_count, 5)
        self.assertEqual(stored["ok"].fetched_at, NOW)
        self.assertIs(stored["gone"].status, DetailStatus.MISSING)
        self.assertIs(stored["broken"].status, DetailStatus.ERROR)
        self.assertIn("HTTP 400", stored["broken"].error)
        self.assertNotIn("std", stored)
        self.assertEqual(self.statuses[0], "Fetching details for 3 duel games...")

    def test_transient_failures_are_retried(self) -> None:
        fetcher = ScriptedFetcher(
            {
                "d1": [
                    requests.ConnectionError("reset"),
                    DetailFetchError("d1", ["x -> HTTP 502"], [502]),
                    _ok("d1"),
                ]
            }
        )
        counts = self._service(fetcher).enrich([_duel("d1")], EnrichmentOptions())

        self.assertEqual(counts.ok, 1)
        self.assertEqual(fetcher.calls, ["d1", "d1", "d1"])

    def test_retries_stop_after_max_attempts(self) -> None:
        fetcher = ScriptedFetcher(
            {"d1": [DetailFetchError("d1", ["x -> boom"]), DetailFetchError("d1", ["x -> boom"])]}
        )
        counts = self._service(fetcher, max_attempts=2).enrich([_duel("d1")], EnrichmentOptions())

        self.assertEqual(counts.fail, 1)
        self.assertEqual(len(fetcher.calls), 2)
        self.assertIs(self.repo.fetch_details(["d1"])["d1"].status, DetailStatus.ERROR)

    def test_unavailable_details_are_not_retried(self) -> None:
        fetcher = ScriptedFetcher({"d1": [DetailFetchError("d1", ["x -> HTTP 410"], [410])]})
        counts = self._service(fetcher).enrich([_duel("d1")], EnrichmentOptions())

        self.assertEqual(counts, EnrichmentCounts(queued=1, skipped=1))
        self.assertEqual(fetcher.calls, ["d1"])

    def test_fetches_run_off_the_calling_thread(self) -> None:
        fetcher = ScriptedFetcher({f"d{n}": [_ok(f"d{n}")] for n in range(6)})
        self._service(fetcher).enrich(
            [_duel(f"d{n}") for n in range(6)],
            EnrichmentOptions(concurrency=3),
        )

        self.assertNotIn(threading.current_thread().name, fetcher.threads)
        self.assertEqual(len(self.repo.fetch_details([f"d{n}" for n in range(6)])), 6)

    def test_no_work(self) -> None:
        service = self._service(ScriptedFetcher({}))
        self.assertEqual(service.enrich([], EnrichmentOptions()), EnrichmentCounts())
        self.repo.upsert_details([GameDetail(game_id="d1", status=DetailStatus.OK, round_count=1)])
        self.assertEqual(
            service.enrich([_duel("d1")], EnrichmentOptions()),
            EnrichmentCounts(queued=0, skipped=1),
        )
        self.assertEqual(self.statuses, [])


class HttpDetailFetcherTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(feed_auth_token="tok")
        self.settings.enrichment.endpoints = ("https://a.test/duels/{game_id}", "https://b.test/duels/{game_id}")
        self.settings.enrichment.team_endpoints = ("https://a.test/team-duels/{game_id}",)
        self.fetcher = build_detail_fetcher(self.settings)

    def test_first_successful_endpoint_wins(self) -> None:
        urls: list[str] = []
        fake_get = make_fake_get(
            [
                FakeResponse(status_code=404),
                FakeResponse(json_data={"rounds": [{}, {}], "currentRoundNumber": 3}),
            ],
            captured_urls=urls,
        )
        with patch("feedmirror.infra.clients.detail_client.requests.get", side_effect=fake_get):
            result = self.fetcher.fetch_detail(_duel("g1"))

        self.assertEqual(urls, ["https://a.test/duels/g1", "https://b.test/duels/g1"])
        self.assertEqual(result.endpoint, "https://b.test/duels/g1")
        self.assertEqual((result.round_count, result.total_rounds), (2, 3))

    def test_team_duels_use_team_endpoints(self) -> None:
        urls: list[str] = []
        fake_get = make_fake_get([FakeResponse(json_data={"rounds": []})], captured_urls=urls)
        with patch("feedmirror.infra.clients.detail_client.requests.get", side_effect=fake_get):
            self.fetcher.fetch_detail(_duel("t1", ModeFamily.TEAMDUELS, "TeamDuels"))

        self.assertEqual(urls, ["https://a.test/team-duels/t1"])

    def test_all_endpoints_failing_raises(self) -> None:
        fake_get = make_fake_get([requests.Timeout("slow"), FakeResponse(status_code=404)])
        with patch("feedmirror.infra.clients.detail_client.requests.get", side_effect=fake_get):
            with self.assertRaises(DetailFetchError) as ctx:
                self.fetcher.fetch_detail(_duel("g1"))

        error = ctx.exception
        self.assertEqual(error.status_codes, [404])
        self.assertTrue(error.unavailable)
        self.assertFalse(error.transient)
        self.assertIn("https://b.test/duels/g1 -> HTTP 404", str(error))


def test_detail_fetch_error_classification() -> None:
    assert DetailFetchError("g", ["a -> reset"]).transient
    assert DetailFetchError("g", ["a -> HTTP 503"], [503]).transient
    assert DetailFetchError("g", ["a -> HTTP 429"], [429]).transient
    assert not DetailFetchError("g", ["a -> HTTP 400"], [400]).transient
    assert DetailFetchError("g", ["a -> HTTP 404"], [404]).status_code == 404


def test_round_helpers() -> None:
    assert count_rounds({"rounds": [1, 2]}) == 2
    assert count_rounds([]) == 0
    assert declared_total_rounds({"currentRoundNumber": "4"}) == 4
    assert declared_total_rounds({"rounds": [1]}) == 1
    assert declared_total_rounds({}) is None
