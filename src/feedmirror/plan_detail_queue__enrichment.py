from __future__ import annotations

from dataclasses import dataclass, field

from feedmirror.models import DetailStatus, FeedItem, GameDetail, ModeFamily

DAY_MS = 24 * 60 * 60 * 1000
_DETAIL_FAMILIES = (ModeFamily.DUELS, ModeFamily.TEAMDUELS)


@dataclass(slots=True)
class DetailQueue:
    queued: list[FeedItem] = field(default_factory=list)
    skipped: list[FeedItem] = field(default_factory=list)


def _has_details(game: FeedItem) -> bool:
    if game.mode_family in _DETAIL_FAMILIES:
        return True
    return "duel" in (game.game_mode or "").lower()


def _needs_fetch(
    detail: GameDetail | None,
    *,
    now_ms: int,
    retry_errors: bool,
    verify_completeness: bool,
    missing_retry_days: int,
) -> bool:
    if detail is None:
        return True
    if detail.status is DetailStatus.OK:
        return verify_completeness and not detail.is_complete()
    if detail.status is DetailStatus.MISSING:
        if not detail.fetched_at:
            return True
        return now_ms - detail.fetched_at >= missing_retry_days * DAY_MS
    return retry_errors


def _plan_detail_queue(
    games: list[FeedItem],
    stored: dict[str, GameDetail],
    *,
    now_ms: int,
    retry_errors: bool = True,
    verify_completeness: bool = True,
    missing_retry_days: int = 7,
) -> DetailQueue:
    """Split games into those needing a detail fetch and those to skip.

    Games outside the duel families are always skipped. A stored detail is
    re-fetched when it is ``ok`` but incomplete (while verifying), ``missing``
    for longer than ``missing_retry_days``, or ``error`` (when retrying).
    """

    queue = DetailQueue()
    seen: set[str] = set()
    for game in games:
        if game.game_id in seen:
            continue
        seen.add(game.game_id)
        if _has_details(game) and _needs_fetch(
            stored.get(game.game_id),
            now_ms=now_ms,
            retry_errors=retry_errors,
            verify_completeness=verify_completeness,
            missing_retry_days=missing_retry_days,
        ):
            queue.queued.append(game)
        else:
            queue.skipped.append(game)
    return queue
