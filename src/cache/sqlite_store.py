# src/cache/sqlite_store.py — v3
"""SQLite-based durable store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. Shared across processes on
the same host through the database file. Expired rows are removed lazily
by the layered cache when read.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from vehicledata.cache.base_cache_store import BaseCacheStore
from vehicledata.cache.models import CacheEntry
from vehicledata.cache.serialization import decode_entry, encode_entry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed durable store."""

    def __init__(self, db_path: Path | str, key_prefix: str = "vehicledata:cache:") -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._prefix = key_prefix
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> CacheEntry | None:
        cursor = self._conn.execute(
            "SELECT data FROM cache_entries WHERE key = ?", (self._prefix + key,)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return decode_entry(row[0])

    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store an entry (upsert)."""
        self._conn.execute(
            "INSERT OR REPLACE INTO cache_entries (key, data) VALUES (?, ?)",
            (self._prefix + key, encode_entry(entry)),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        self._conn.execute(
            "DELETE FROM cache_entries WHERE key = ?", (self._prefix + key,)
        )
        self._conn.commit()

    async def clear(self) -> None:
        self._conn.execute(
            "DELETE FROM cache_entries WHERE key LIKE ?", (self._prefix + "%",)
        )
        self._conn.commit()

    async def close(self) -> None:
        self._conn.close()
