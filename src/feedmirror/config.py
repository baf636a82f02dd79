from __future__ import annotations

import os
from dataclasses import MISSING, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from feedmirror.errors import SettingsError

_MISSING = object()
_SETTINGS_ALIAS_FIELDS = (
    "feed_url",
    "feed_auth_token",
    "feed_max_pages",
    "feed_delay_ms",
    "feed_timeout_s",
    "enrichment_mode",
    "enrichment_concurrency",
    "enrichment_retry_errors",
    "enrichment_verify_completeness",
    "detail_max_attempts",
    "detail_timeout_s",
)
ENRICHMENT_MODES = ("off", "interleaved", "batch")

load_dotenv()

DEFAULT_DATA_DIR = Path(os.getenv("FEEDMIRROR_DATA_DIR", "data"))
DEFAULT_FEED_URL = "https://www.geoguessr.com/api/v4/feed/private"
DEFAULT_MAX_PAGES = 120
DEFAULT_DELAY_MS = 150
DEFAULT_DIAGNOSTICS_SAMPLE_CAP = 2000
DEFAULT_DETAIL_ENDPOINTS = (
    "https://game-server.geoguessr.com/api/duels/{game_id}",
    "https://www.geoguessr.com/api/duels/{game_id}",
    "https://www.geoguessr.com/api/v3/duels/{game_id}",
    "https://www.geoguessr.com/api/v4/competitive-games/{game_id}",
    "https://www.geoguessr.com/api/v3/games/{game_id}",
)
DEFAULT_TEAM_DETAIL_ENDPOINTS = (
    "https://game-server.geoguessr.com/api/duels/{game_id}",
    "https://www.geoguessr.com/api/team-duels/{game_id}",
    "https://www.geoguessr.com/api/v3/team-duels/{game_id}",
    "https://www.geoguessr.com/api/v4/competitive-games/{game_id}",
)


def _optional_float(value: str | None) -> float | None:
    if not value:
        return None
    return float(value)


def _field_value(name: str, field_info: object, kwargs: dict[str, object]) -> object:
    value = kwargs.pop(name, _MISSING)
    if value is not _MISSING:
        return value
    default_factory = getattr(field_info, "default_factory", MISSING)
    if default_factory is not MISSING:
        return default_factory()
    default = getattr(field_info, "default", MISSING)
    if default is not MISSING:
        return default
    raise TypeError(f"Missing required argument: {name}")


def _apply_settings_aliases(settings: Settings, kwargs: dict[str, object]) -> None:
    for alias in _SETTINGS_ALIAS_FIELDS:
        value = kwargs.pop(alias, _MISSING)
        if value is not _MISSING:
            setattr(settings, alias, value)


def _raise_on_unexpected_kwargs(kwargs: dict[str, object]) -> None:
    if kwargs:
        unexpected = next(iter(kwargs))
        raise TypeError(f"Settings.__init__() got an unexpected keyword argument '{unexpected}'")


@dataclass(slots=True)
class FeedSettings:
    """Feed endpoint and pagination configuration."""

    url: str = os.getenv("FEEDMIRROR_FEED_URL", DEFAULT_FEED_URL)
    auth_token: str | None = os.getenv("FEEDMIRROR_AUTH_TOKEN")
    max_pages: int = int(os.getenv("FEEDMIRROR_MAX_PAGES", str(DEFAULT_MAX_PAGES)))
    delay_ms: int = int(os.getenv("FEEDMIRROR_DELAY_MS", str(DEFAULT_DELAY_MS)))
    # None leaves requests without a timeout; a hung page stalls the run.
    timeout_s: float | None = _optional_float(os.getenv("FEEDMIRROR_FEED_TIMEOUT_S"))


@dataclass(slots=True)
class EnrichmentSettings:
    """Detail enrichment configuration."""

    mode: str = os.getenv("FEEDMIRROR_ENRICHMENT_MODE", "off")
    concurrency: int = int(os.getenv("FEEDMIRROR_ENRICHMENT_CONCURRENCY", "4"))
    retry_errors: bool = os.getenv("FEEDMIRROR_ENRICHMENT_RETRY_ERRORS", "1") == "1"
    verify_completeness: bool = os.getenv("FEEDMIRROR_ENRICHMENT_VERIFY_COMPLETENESS", "1") == "1"
    detail_max_attempts: int = int(os.getenv("FEEDMIRROR_DETAIL_MAX_ATTEMPTS", "3"))
    detail_timeout_s: float = float(os.getenv("FEEDMIRROR_DETAIL_TIMEOUT_S", "20"))
    missing_retry_days: int = int(os.getenv("FEEDMIRROR_DETAIL_MISSING_RETRY_DAYS", "7"))
    endpoints: tuple[str, ...] = DEFAULT_DETAIL_ENDPOINTS
    team_endpoints: tuple[str, ...] = DEFAULT_TEAM_DETAIL_ENDPOINTS


@dataclass(slots=True, init=False)
class Settings:
    """Central configuration for feed sync and detail enrichment."""

    feed: FeedSettings = field(default_factory=FeedSettings)
    enrichment: EnrichmentSettings = field(default_factory=EnrichmentSettings)

    duckdb_path: Path = Path(
        os.getenv("FEEDMIRROR_DUCKDB_PATH", DEFAULT_DATA_DIR / "feedmirror.duckdb")
    )
    diagnostics_sample_cap: int = int(
        os.getenv("FEEDMIRROR_DIAGNOSTICS_SAMPLE_CAP", str(DEFAULT_DIAGNOSTICS_SAMPLE_CAP))
    )
    probe_enabled: bool = os.getenv("FEEDMIRROR_PROBE_ENABLED", "1") == "1"

    def __init__(self, **kwargs: object) -> None:
        for name, field_info in self.__dataclass_fields__.items():
            setattr(self, name, _field_value(name, field_info, kwargs))
        _apply_settings_aliases(self, kwargs)
        _raise_on_unexpected_kwargs(kwargs)
        self.validate()

    def validate(self) -> None:
        if self.enrichment.mode not in ENRICHMENT_MODES:
            raise SettingsError(
                f"Unknown enrichment mode {self.enrichment.mode!r}; "
                f"expected one of {', '.join(ENRICHMENT_MODES)}"
            )
        if self.feed.max_pages < 1:
            raise SettingsError("feed_max_pages must be at least 1")

    @property
    def feed_url(self) -> str:
        return self.feed.url

    @feed_url.setter
    def feed_url(self, value: str) -> None:
        self.feed.url = value

    @property
    def feed_auth_token(self) -> str | None:
        return self.feed.auth_token

    @feed_auth_token.setter
    def feed_auth_token(self, value: str | None) -> None:
        self.feed.auth_token = value

    @property
    def feed_max_pages(self) -> int:
        return self.feed.max_pages

    @feed_max_pages.setter
    def feed_max_pages(self, value: int) -> None:
        self.feed.max_pages = value

    @property
    def feed_delay_ms(self) -> int:
        return self.feed.delay_ms

    @feed_delay_ms.setter
    def feed_delay_ms(self, value: int) -> None:
        self.feed.delay_ms = value

    @property
    def feed_timeout_s(self) -> float | None:
        return self.feed.timeout_s

    @feed_timeout_s.setter
    def feed_timeout_s(self, value: float | None) -> None:
        self.feed.timeout_s = value

    @property
    def enrichment_mode(self) -> str:
        return self.enrichment.mode

    @enrichment_mode.setter
    def enrichment_mode(self, value: str) -> None:
        self.enrichment.mode = value

    @property
    def enrichment_concurrency(self) -> int:
        return self.enrichment.concurrency

    @enrichment_concurrency.setter
    def enrichment_concurrency(self, value: int) -> None:
        self.enrichment.concurrency = value

    @property
    def enrichment_retry_errors(self) -> bool:
        return self.enrichment.retry_errors

    @enrichment_retry_errors.setter
    def enrichment_retry_errors(self, value: bool) -> None:
        self.enrichment.retry_errors = value

    @property
    def enrichment_verify_completeness(self) -> bool:
        return self.enrichment.verify_completeness

    @enrichment_verify_completeness.setter
    def enrichment_verify_completeness(self, value: bool) -> None:
        self.enrichment.verify_completeness = value

    @property
    def detail_max_attempts(self) -> int:
        return self.enrichment.detail_max_attempts

    @detail_max_attempts.setter
    def detail_max_attempts(self, value: int) -> None:
        self.enrichment.detail_max_attempts = value

    @property
    def detail_timeout_s(self) -> float:
        return self.enrichment.detail_timeout_s

    @detail_timeout_s.setter
    def detail_timeout_s(self, value: float) -> None:
        self.enrichment.detail_timeout_s = value


def get_settings(**overrides: object) -> Settings:
    """Load settings from the environment, applying keyword overrides.

    Overrides may name any `Settings` field or flat alias and win over the
    environment.
    """

    load_dotenv()
    kwargs: dict[str, object] = dict(
        feed=FeedSettings(
            url=os.getenv("FEEDMIRROR_FEED_URL", DEFAULT_FEED_URL),
            auth_token=os.getenv("FEEDMIRROR_AUTH_TOKEN"),
            max_pages=int(os.getenv("FEEDMIRROR_MAX_PAGES", str(DEFAULT_MAX_PAGES))),
            delay_ms=int(os.getenv("FEEDMIRROR_DELAY_MS", str(DEFAULT_DELAY_MS))),
            timeout_s=_optional_float(os.getenv("FEEDMIRROR_FEED_TIMEOUT_S")),
        ),
        enrichment=EnrichmentSettings(
            mode=os.getenv("FEEDMIRROR_ENRICHMENT_MODE", "off"),
            concurrency=int(os.getenv("FEEDMIRROR_ENRICHMENT_CONCURRENCY", "4")),
            retry_errors=os.getenv("FEEDMIRROR_ENRICHMENT_RETRY_ERRORS", "1") == "1",
            verify_completeness=(
                os.getenv("FEEDMIRROR_ENRICHMENT_VERIFY_COMPLETENESS", "1") == "1"
            ),
            detail_max_attempts=int(os.getenv("FEEDMIRROR_DETAIL_MAX_ATTEMPTS", "3")),
            detail_timeout_s=float(os.getenv("FEEDMIRROR_DETAIL_TIMEOUT_S", "20")),
            missing_retry_days=int(os.getenv("FEEDMIRROR_DETAIL_MISSING_RETRY_DAYS", "7")),
        ),
        duckdb_path=Path(
            os.getenv(
                "FEEDMIRROR_DUCKDB_PATH",
                Path(os.getenv("FEEDMIRROR_DATA_DIR", "data")) / "feedmirror.duckdb",
            )
        ),
        diagnostics_sample_cap=int(
            os.getenv(
                "FEEDMIRROR_DIAGNOSTICS_SAMPLE_CAP",
                str(DEFAULT_DIAGNOSTICS_SAMPLE_CAP),
            )
        ),
        probe_enabled=os.getenv("FEEDMIRROR_PROBE_ENABLED", "1") == "1",
    )
    kwargs.update(overrides)
    return Settings(**kwargs)
