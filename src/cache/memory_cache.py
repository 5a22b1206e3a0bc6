# src/cache/memory_cache.py — v2
"""Process-local, ephemeral cache tier.

Fast and lost on restart. One instance is shared by every caller in the
process; a lock keeps the map consistent when threads share it.
Expired entries are purged lazily on access, there is no background sweep.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from vehicledata.cache.models import CacheEntry, detached

logger = logging.getLogger(__name__)


class MemoryCache:
    """In-memory key/value map with per-entry expiration."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live entry for key, purging it if expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Memory cache MISS: %s", key)
                return None
            if not entry.is_valid(self._clock()):
                del self._entries[key]
                logger.debug("Memory cache EXPIRED: %s", key)
                return None
        logger.debug("Memory cache HIT: %s", key)
        return entry

    def set_entry(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str) -> Any | None:
        entry = self.get_entry(key)
        return None if entry is None else detached(entry.payload)

    def set(self, key: str, value: Any, ttl_seconds: int | None) -> None:
        """Store value; ``ttl_seconds=None`` keeps it for the process lifetime."""
        self.set_entry(key, CacheEntry.create(value, ttl_seconds, now=self._clock()))
        logger.debug("Memory cache SET: %s (ttl=%ss)", key, ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("Memory cache CLEARED")

    def size(self) -> int:
        """Number of stored entries, expired ones not yet purged included."""
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()
