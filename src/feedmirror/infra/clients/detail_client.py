"""HTTP detail fetcher trying an ordered list of endpoint templates."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import requests

from feedmirror.build_auth_headers__feed_auth import _auth_headers
from feedmirror.config import Settings
from feedmirror.errors import DetailFetchError
from feedmirror.models import DetailFetchResult, FeedItem, ModeFamily
from feedmirror.utils import to_int
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "HttpDetailFetcher",
    "HttpDetailFetcherContext",
    "build_detail_fetcher",
    "count_rounds",
    "declared_total_rounds",
]


def count_rounds(payload: object) -> int:
    if not isinstance(payload, Mapping):
        return 0
    rounds = payload.get("rounds")
    return len(rounds) if isinstance(rounds, list) else 0


def declared_total_rounds(payload: object) -> int | None:
    """Return ``currentRoundNumber`` when present, else the round list length."""

    if not isinstance(payload, Mapping):
        return None
    raw = payload.get("currentRoundNumber")
    declared = int(raw) if isinstance(raw, float) else to_int(raw)
    if declared is not None:
        return declared
    rounds = count_rounds(payload)
    return rounds or None


@dataclass(slots=True)
class HttpDetailFetcherContext:
    settings: Settings


class HttpDetailFetcher:
    """Fetches per-game details; team duels try team endpoints first."""

    def __init__(self, context: HttpDetailFetcherContext) -> None:
        self._context = context

    @property
    def settings(self) -> Settings:
        return self._context.settings

    def endpoints_for(self, game: FeedItem) -> list[str]:
        enrichment = self.settings.enrichment
        templates = (
            enrichment.team_endpoints
            if game.mode_family is ModeFamily.TEAMDUELS
            else enrichment.endpoints
        )
        return [template.format(game_id=game.game_id) for template in templates]

    def fetch_detail(self, game: FeedItem, auth_token: str | None = None) -> DetailFetchResult:
        """Return the first 2xx JSON payload across candidate endpoints.

        Raises:
            DetailFetchError: When every endpoint fails.
        """

        token = auth_token or self.settings.feed_auth_token
        failures: list[str] = []
        status_codes: list[int] = []
        for endpoint in self.endpoints_for(game):
            try:
                response = requests.get(
                    endpoint,
                    headers=_auth_headers(token),
                    timeout=self.settings.detail_timeout_s,
                )
            except requests.RequestException as exc:
                failures.append(f"{endpoint} -> {exc}")
                continue
            if not 200 <= response.status_code < 300:
                failures.append(f"{endpoint} -> HTTP {response.status_code}")
                status_codes.append(response.status_code)
                continue
            try:
                payload = response.json()
            except ValueError as exc:
                failures.append(f"{endpoint} -> invalid JSON ({exc})")
                status_codes.append(response.status_code)
                continue
            return DetailFetchResult(
                endpoint=endpoint,
                payload=payload,
                total_rounds=declared_total_rounds(payload),
                round_count=count_rounds(payload),
            )
        logger.debug("Detail fetch failed for %s: %s", game.game_id, failures)
        raise DetailFetchError(game.game_id, failures, status_codes)


def build_detail_fetcher(settings: Settings) -> HttpDetailFetcher:
    return HttpDetailFetcher(HttpDetailFetcherContext(settings=settings))
