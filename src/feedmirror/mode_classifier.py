"""Mode family classification from free-text mode strings and type hints."""

from __future__ import annotations

from collections.abc import Callable

from feedmirror.field_access import first_value, text_accessors
from feedmirror.models import GameType, ModeFamily

ModeRule = tuple[ModeFamily, Callable[[str], bool]]

TYPE_HINT_ACCESSORS = text_accessors(
    (
        "type",
        "__typename",
        "payload.type",
        "payload.__typename",
        "payload.gameType",
        "payload.mode",
        "payload.slug",
    )
)

_MODE_STRING_RULES: tuple[ModeRule, ...] = (
    (ModeFamily.TEAMDUELS, lambda text: "team" in text and "duel" in text),
    (ModeFamily.DUELS, lambda text: "duel" in text),
    (ModeFamily.STANDARD, lambda text: "standard" in text),
    (ModeFamily.STREAK, lambda text: "streak" in text),
)

# Type hints are more reliable than gameMode for older events.
_TYPE_HINT_RULES: tuple[ModeRule, ...] = (
    (ModeFamily.TEAMDUELS, lambda text: "team" in text and "duel" in text),
    (ModeFamily.DUELS, lambda text: "duel" in text),
    (ModeFamily.STREAK, lambda text: "streak" in text),
    (
        ModeFamily.STANDARD,
        lambda text: any(word in text for word in ("standard", "singleplayer", "classic")),
    ),
)

_GAME_TYPES = {
    ModeFamily.DUELS: GameType.DUELS,
    ModeFamily.TEAMDUELS: GameType.DUELS,
    ModeFamily.STANDARD: GameType.CLASSIC,
    ModeFamily.STREAK: GameType.CLASSIC,
}


def _apply_rules(text: str | None, rules: tuple[ModeRule, ...]) -> ModeFamily:
    normalized = (text or "").strip().lower()
    if not normalized:
        return ModeFamily.OTHER
    for family, matches in rules:
        if matches(normalized):
            return family
    return ModeFamily.OTHER


def classify_mode_string(game_mode: str | None) -> ModeFamily:
    """Classify a raw mode string by case-insensitive substring rules."""

    return _apply_rules(game_mode, _MODE_STRING_RULES)


def classify_type_hint(hint: str | None) -> ModeFamily:
    """Classify a type/``__typename``/slug hint."""

    return _apply_rules(hint, _TYPE_HINT_RULES)


def extract_type_hint(event: object) -> str | None:
    return first_value(event, TYPE_HINT_ACCESSORS)


def classify(event: object, game_mode: str | None = None) -> ModeFamily:
    """Classify an event into a mode family.

    The mode string wins whenever it names a known family; otherwise the
    event's type hint fields are consulted, defaulting to ``other``.

    Args:
        event: Raw feed event.
        game_mode: Extracted mode text, if any.

    Returns:
        The `ModeFamily` for the event.

    Example:
        >>> classify({"__typename": "TeamDuels"}, "")
        <ModeFamily.TEAMDUELS: 'teamduels'>
    """

    by_mode = classify_mode_string(game_mode)
    if by_mode is not ModeFamily.OTHER:
        return by_mode
    return classify_type_hint(extract_type_hint(event))


def game_type_for(family: ModeFamily) -> GameType:
    return _GAME_TYPES.get(family, GameType.OTHER)
