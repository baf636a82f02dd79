"""DuckDB storage for mirrored feed rows, sync state and details."""

from feedmirror.db.duckdb_detail_repository import DuckDbDetailRepository
from feedmirror.db.duckdb_feed_item_repository import DuckDbFeedItemRepository
from feedmirror.db.duckdb_store import get_connection, get_schema_version, init_schema
from feedmirror.db.duckdb_sync_state_repository import (
    SYNC_CURSOR_KEY,
    DuckDbSyncStateRepository,
)

__all__ = [
    "SYNC_CURSOR_KEY",
    "DuckDbDetailRepository",
    "DuckDbFeedItemRepository",
    "DuckDbSyncStateRepository",
    "get_connection",
    "get_schema_version",
    "init_schema",
]
