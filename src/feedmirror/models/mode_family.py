"""Closed classification of match game modes."""

from __future__ import annotations

from enum import StrEnum


class ModeFamily(StrEnum):
    """Mode family of a mirrored match.

    New platform modes get new classification rules, never new meanings for
    existing members.
    """

    DUELS = "duels"
    TEAMDUELS = "teamduels"
    STANDARD = "standard"
    STREAK = "streak"
    OTHER = "other"


class GameType(StrEnum):
    """Coarse game type derived from the mode family."""

    DUELS = "duels"
    CLASSIC = "classic"
    OTHER = "other"
