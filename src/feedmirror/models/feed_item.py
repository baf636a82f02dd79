"""Models for mirrored feed rows."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from feedmirror.models.mode_family import GameType, ModeFamily


class FeedItem(BaseModel):
    """One mirrored match, keyed by ``game_id``.

    Attributes:
        game_id: Globally unique game identifier (primary key).
        played_at: Event time in epoch milliseconds.
        mode_family: Classified mode family.
        game_mode: Raw mode text from the feed, if any.
        game_type: Coarse type derived from ``mode_family``.
        is_team_duels: Whether the family is ``teamduels``.
        raw_event: Original event payload kept for re-derivation.

    Example:
        >>> FeedItem(game_id="a", played_at=0, mode_family=ModeFamily.DUELS)
    """

    game_id: str
    played_at: int
    mode_family: ModeFamily = ModeFamily.OTHER
    game_mode: str | None = None
    game_type: GameType = GameType.OTHER
    is_team_duels: bool = False
    raw_event: Any = Field(default=None)


class ExtractedEvent(BaseModel):
    """A feed event after identifier, time and mode extraction.

    ``time_parsed`` is False when ``played_at`` fell back to the current time.
    """

    item: FeedItem
    id_source: str
    time_parsed: bool = True
