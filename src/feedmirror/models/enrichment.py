"""Models exchanged with the detail enrichment stage."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from feedmirror.models.mode_family import ModeFamily


class DetailStatus(StrEnum):
    MISSING = "missing"
    OK = "ok"
    ERROR = "error"


class EnrichmentOptions(BaseModel):
    """Options forwarded to the enrichment coordinator."""

    concurrency: int = Field(default=4, ge=1)
    retry_errors: bool = True
    verify_completeness: bool = True
    auth_token: str | None = None


class EnrichmentCounts(BaseModel):
    """Aggregate enrichment counts; reported only, never used for control flow."""

    queued: int = 0
    ok: int = 0
    fail: int = 0
    skipped: int = 0

    def __add__(self, other: EnrichmentCounts) -> EnrichmentCounts:
        return EnrichmentCounts(
            queued=self.queued + other.queued,
            ok=self.ok + other.ok,
            fail=self.fail + other.fail,
            skipped=self.skipped + other.skipped,
        )


class GameDetail(BaseModel):
    """Stored detail status for one game."""

    game_id: str
    status: DetailStatus
    fetched_at: int | None = None
    error: str | None = None
    endpoint: str | None = None
    mode_family: ModeFamily | None = None
    game_mode: str | None = None
    total_rounds: int | None = None
    round_count: int = 0
    raw: Any = None

    def is_complete(self) -> bool:
        if self.round_count == 0:
            return False
        if self.total_rounds and self.total_rounds > 0:
            return self.round_count >= self.total_rounds
        return True


class DetailFetchResult(BaseModel):
    """Payload returned by a detail fetcher."""

    endpoint: str
    payload: Any = None
    total_rounds: int | None = None
    round_count: int = 0
