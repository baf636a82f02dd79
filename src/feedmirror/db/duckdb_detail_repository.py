"""Detail status repository for DuckDB-backed storage."""

from __future__ import annotations

import json
from collections.abc import Iterable

import duckdb

from feedmirror.db._rows_to_dicts import _rows_to_dicts
from feedmirror.models import DetailStatus, GameDetail, ModeFamily

_UPSERT_DETAIL_SQL = """
INSERT OR REPLACE INTO game_details (
    game_id,
    status,
    fetched_at,
    error,
    endpoint,
    mode_family,
    game_mode,
    total_rounds,
    round_count,
    raw
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _row_to_detail(row: dict[str, object]) -> GameDetail:
    family = row.get("mode_family")
    return GameDetail(
        game_id=str(row["game_id"]),
        status=DetailStatus(row["status"]),
        fetched_at=row.get("fetched_at"),
        error=row.get("error"),
        endpoint=row.get("endpoint"),
        mode_family=ModeFamily(family) if family else None,
        game_mode=row.get("game_mode"),
        total_rounds=row.get("total_rounds"),
        round_count=int(row.get("round_count") or 0),
        raw=row.get("raw"),
    )


class DuckDbDetailRepository:
    """Stores per-game detail fetch outcomes."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def fetch_details(self, game_ids: list[str]) -> dict[str, GameDetail]:
        if not game_ids:
            return {}
        placeholders = ", ".join(["?"] * len(game_ids))
        result = self._conn.execute(
            f"SELECT * FROM game_details WHERE game_id IN ({placeholders})",
            list(game_ids),
        )
        details = [_row_to_detail(row) for row in _rows_to_dicts(result, ("raw",))]
        return {detail.game_id: detail for detail in details}

    def upsert_details(self, details: Iterable[GameDetail]) -> int:
        rows = [
            [
                detail.game_id,
                detail.status.value,
                detail.fetched_at,
                detail.error,
                detail.endpoint,
                detail.mode_family.value if detail.mode_family else None,
                detail.game_mode,
                detail.total_rounds,
                detail.round_count,
                json.dumps(detail.raw, default=str) if detail.raw is not None else None,
            ]
            for detail in details
        ]
        if not rows:
            return 0
        self._conn.execute("BEGIN TRANSACTION")
        try:
            self._conn.executemany(_UPSERT_DETAIL_SQL, rows)
            self._conn.execute("COMMIT")
        except duckdb.Error:
            self._conn.execute("ROLLBACK")
            raise
        return len(rows)
