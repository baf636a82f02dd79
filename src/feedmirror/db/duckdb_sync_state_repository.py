"""Cursor and diagnostics records stored in the DuckDB ``sync_meta`` table."""

from __future__ import annotations

import json

import duckdb

from feedmirror.diagnostics_recorder import DIAGNOSTICS_KEY
from feedmirror.utils import to_int
from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)

SYNC_CURSOR_KEY = "sync"


class DuckDbSyncStateRepository:
    """Reads and writes the singleton sync records."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def _read_value(self, key: str) -> object | None:
        row = self._conn.execute("SELECT value FROM sync_meta WHERE key = ?", [key]).fetchone()
        if not row or row[0] is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Invalid sync_meta record for %s, ignoring", key)
            return None

    def _write_value(self, key: str, value: object) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO sync_meta VALUES (?, ?, CURRENT_TIMESTAMP)",
            [key, json.dumps(value, default=str)],
        )

    def read_last_seen_time(self) -> int | None:
        value = self._read_value(SYNC_CURSOR_KEY)
        if not isinstance(value, dict):
            return None
        raw = value.get("lastSeenTime")
        if isinstance(raw, float):
            raw = int(raw)
        return to_int(raw)

    def write_last_seen_time(self, last_seen_time: int) -> int:
        """Persist the cursor; the stored value never decreases."""
        current = self.read_last_seen_time()
        value = last_seen_time if current is None else max(current, last_seen_time)
        self._write_value(SYNC_CURSOR_KEY, {"lastSeenTime": value})
        return value

    def read_diagnostics(self) -> dict[str, object] | None:
        value = self._read_value(DIAGNOSTICS_KEY)
        return value if isinstance(value, dict) else None

    def write_diagnostics(self, snapshot: dict[str, object]) -> None:
        self._write_value(DIAGNOSTICS_KEY, snapshot)
