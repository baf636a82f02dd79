"""Custom error types used in feedmirror."""

from __future__ import annotations

import requests


class FeedHttpError(requests.HTTPError):
    """Feed endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str, **kwargs: object) -> None:
        super().__init__(f"Feed HTTP {status_code}", **kwargs)
        self.status_code = status_code
        self.url = url


UNAVAILABLE_STATUS_CODES = frozenset({403, 404, 410})


class DetailFetchError(requests.HTTPError):
    """Every candidate detail endpoint failed for a game.

    ``status_codes`` holds the HTTP status of each endpoint that answered;
    endpoints that failed at the network level contribute no status.
    """

    def __init__(
        self,
        game_id: str,
        failures: list[str],
        status_codes: list[int] | None = None,
    ) -> None:
        super().__init__(f"No endpoint worked for {game_id}: {' | '.join(failures)}")
        self.game_id = game_id
        self.failures = failures
        self.status_codes = list(status_codes or [])

    @property
    def status_code(self) -> int | None:
        return self.status_codes[-1] if self.status_codes else None

    @property
    def unavailable(self) -> bool:
        """True when any endpoint reported the game as gone or forbidden."""

        return any(code in UNAVAILABLE_STATUS_CODES for code in self.status_codes)

    @property
    def transient(self) -> bool:
        if self.unavailable:
            return False
        if len(self.status_codes) < len(self.failures):
            return True
        return any(code == 429 or code >= 500 for code in self.status_codes)


class SettingsError(ValueError):
    """Invalid configuration value."""
