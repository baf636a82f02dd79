from __future__ import annotations

from feedmirror.models import FeedItem


def _dedupe_page_items(items: list[FeedItem]) -> list[FeedItem]:
    """Collapse same-page duplicates; a strictly newer ``played_at`` wins, ties keep the first."""

    by_id: dict[str, FeedItem] = {}
    for item in items:
        previous = by_id.get(item.game_id)
        if previous is None or item.played_at > previous.played_at:
            by_id[item.game_id] = item
    return list(by_id.values())
