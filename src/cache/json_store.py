# src/cache/json_store.py — v3
"""JSON file-based durable store (default CACHE_BACKEND=json).

One envelope file per key under ``CACHE_ROOT/<namespace>/``, where the
namespace directory is derived from the key prefix, so stores with
different prefixes can share a root and clear independently. File names
are a hash of the prefixed key so arbitrary make/model strings are safe on
disk.
"""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path

from vehicledata.cache.base_cache_store import BaseCacheStore
from vehicledata.cache.models import CacheEntry
from vehicledata.cache.serialization import decode_entry, encode_entry

logger = logging.getLogger(__name__)


def namespace_dir(key_prefix: str) -> str:
    """Directory name for a key prefix: readable slug plus a short hash."""
    slug = re.sub(r"[^A-Za-z0-9]+", "_", key_prefix).strip("_") or "default"
    digest = hashlib.sha256(key_prefix.encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"


class JsonCacheStore(BaseCacheStore):
    """File-based store using one JSON envelope per key."""

    def __init__(self, cache_root: Path | str, key_prefix: str = "vehicledata:cache:") -> None:
        self._prefix = key_prefix
        self._dir = Path(cache_root).expanduser() / namespace_dir(key_prefix)
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._dir

    async def get(self, key: str) -> CacheEntry | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        return decode_entry(path.read_text(encoding="utf-8"))

    async def put(self, key: str, entry: CacheEntry) -> None:
        path = self._entry_path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(encode_entry(entry), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    async def clear(self) -> None:
        removed = 0
        for path in self._dir.glob("*.json"):
            path.unlink(missing_ok=True)
            removed += 1
        logger.debug("Cleared %d entries from %s", removed, self._dir)

    def _entry_path(self, key: str) -> Path:
        digest = hashlib.sha256(f"{self._prefix}{key}".encode("utf-8")).hexdigest()
        return self._dir / f"{digest}.json"
