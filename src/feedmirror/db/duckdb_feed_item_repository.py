"""Feed item repository for DuckDB-backed storage."""

from __future__ import annotations

import json
from collections.abc import Iterable

import duckdb

from feedmirror.db._rows_to_dicts import _rows_to_dicts
from feedmirror.models import FeedItem, GameType, ModeFamily

_UPSERT_FEED_ITEM_SQL = """
INSERT OR REPLACE INTO feed_items (
    game_id,
    played_at,
    mode_family,
    game_mode,
    game_type,
    is_team_duels,
    raw_event,
    synced_at
) VALUES (?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
"""

_FEED_ITEM_COLUMNS = """
    game_id,
    played_at,
    mode_family,
    game_mode,
    game_type,
    is_team_duels,
    raw_event
"""

_JSON_COLUMNS = ("raw_event",)


def _dump_json(value: object) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=str)


def _feed_item_params(item: FeedItem) -> list[object]:
    return [
        item.game_id,
        item.played_at,
        item.mode_family.value,
        item.game_mode,
        item.game_type.value,
        item.is_team_duels,
        _dump_json(item.raw_event),
    ]


def _row_to_feed_item(row: dict[str, object]) -> FeedItem:
    return FeedItem(
        game_id=str(row["game_id"]),
        played_at=int(row["played_at"] or 0),
        mode_family=ModeFamily(row["mode_family"] or ModeFamily.OTHER),
        game_mode=row["game_mode"],
        game_type=GameType(row["game_type"] or GameType.OTHER),
        is_team_duels=bool(row["is_team_duels"]),
        raw_event=row["raw_event"],
    )


class DuckDbFeedItemRepository:
    """Encapsulates feed item persistence and reads for DuckDB."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def upsert_feed_items(self, items: Iterable[FeedItem]) -> int:
        """Write a batch, replacing any existing row with the same game id wholesale.

        Last write wins: a later, less complete event overwrites fields an
        earlier one populated.
        """
        items_list = list(items)
        if not items_list:
            return 0
        self._conn.execute("BEGIN TRANSACTION")
        try:
            self._conn.executemany(
                _UPSERT_FEED_ITEM_SQL,
                [_feed_item_params(item) for item in items_list],
            )
            self._conn.execute("COMMIT")
        except duckdb.Error:
            self._conn.execute("ROLLBACK")
            raise
        return len(items_list)

    def fetch_feed_item(self, game_id: str) -> FeedItem | None:
        result = self._conn.execute(
            f"SELECT {_FEED_ITEM_COLUMNS} FROM feed_items WHERE game_id = ?",
            [game_id],
        )
        rows = _rows_to_dicts(result, _JSON_COLUMNS)
        return _row_to_feed_item(rows[0]) if rows else None

    def fetch_feed_items(self, limit: int | None = None) -> list[FeedItem]:
        """Return stored rows, newest first."""
        query = f"SELECT {_FEED_ITEM_COLUMNS} FROM feed_items ORDER BY played_at DESC, game_id"
        params: list[object] = []
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        result = self._conn.execute(query, params)
        return [_row_to_feed_item(row) for row in _rows_to_dicts(result, _JSON_COLUMNS)]

    def count_feed_items(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM feed_items").fetchone()
        return int(row[0]) if row else 0

    def fetch_mode_counts(self) -> list[dict[str, object]]:
        result = self._conn.execute(
            """
            SELECT COALESCE(game_mode, 'unknown') AS mode, COUNT(*) AS count
            FROM feed_items
            GROUP BY 1
            ORDER BY count DESC, mode
            """
        )
        return [
            {"mode": str(row["mode"]), "count": int(row["count"])}
            for row in _rows_to_dicts(result)
        ]
