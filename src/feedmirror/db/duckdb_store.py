from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import duckdb

from feedmirror.utils.logger import get_logger

logger = get_logger(__name__)


FEED_ITEMS_SCHEMA = """
CREATE TABLE IF NOT EXISTS feed_items (
    game_id TEXT PRIMARY KEY,
    played_at BIGINT,
    mode_family TEXT,
    game_mode TEXT,
    game_type TEXT,
    is_team_duels BOOLEAN,
    raw_event TEXT,
    synced_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

SYNC_META_SCHEMA = """
CREATE TABLE IF NOT EXISTS sync_meta (
    key TEXT PRIMARY KEY,
    value TEXT,
    updated_at TIMESTAMP
);
"""

GAME_DETAILS_SCHEMA = """
CREATE TABLE IF NOT EXISTS game_details (
    game_id TEXT PRIMARY KEY,
    status TEXT,
    fetched_at BIGINT,
    error TEXT,
    endpoint TEXT,
    mode_family TEXT,
    game_mode TEXT,
    total_rounds INTEGER,
    round_count INTEGER,
    raw TEXT
);
"""

SCHEMA_VERSION_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER,
    updated_at TIMESTAMP
);
"""

SCHEMA_VERSION = 2


def get_connection(db_path: Path) -> duckdb.DuckDBPyConnection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening DuckDB at %s", db_path)
    try:
        return duckdb.connect(str(db_path))
    except duckdb.InternalException as exc:
        if not _should_attempt_wal_recovery(exc):
            raise
        wal_path = db_path.with_name(f"{db_path.name}.wal")
        if not wal_path.exists():
            raise
        logger.warning("Removing DuckDB WAL after replay error: %s", wal_path)
        wal_path.unlink()
        return duckdb.connect(str(db_path))


def init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    migrate_schema(conn)


def migrate_schema(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(SCHEMA_VERSION_SCHEMA)
    version = _get_schema_version(conn)
    for target_version, migration in _SCHEMA_MIGRATIONS:
        if target_version > SCHEMA_VERSION or version >= target_version:
            continue
        logger.info("Applying DuckDB schema migration v%s", target_version)
        migration(conn)
        _set_schema_version(conn, target_version)
        version = target_version


def get_schema_version(conn: duckdb.DuckDBPyConnection) -> int:
    return _get_schema_version(conn)


def _should_attempt_wal_recovery(exc: Exception) -> bool:
    if "wal" not in str(exc).lower():
        return False
    allow = os.getenv("FEEDMIRROR_ALLOW_WAL_RECOVERY", "").lower()
    return allow in {"1", "true", "yes"}


def _get_schema_version(conn: duckdb.DuckDBPyConnection) -> int:
    row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
    if not row:
        return 0
    return int(row[0] or 0)


def _set_schema_version(conn: duckdb.DuckDBPyConnection, version: int) -> None:
    conn.execute("DELETE FROM schema_version")
    conn.execute("INSERT INTO schema_version VALUES (?, CURRENT_TIMESTAMP)", [version])


def _migration_base_tables(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(FEED_ITEMS_SCHEMA)
    conn.execute(SYNC_META_SCHEMA)


def _migration_add_game_details(conn: duckdb.DuckDBPyConnection) -> None:
    conn.execute(GAME_DETAILS_SCHEMA)


_SCHEMA_MIGRATIONS: tuple[tuple[int, Callable[[duckdb.DuckDBPyConnection], None]], ...] = (
    (1, _migration_base_tables),
    (2, _migration_add_game_details),
)
