# src/cache/redis_store.py — v2
"""Redis-based durable store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments: every process shares the tier.
Entries also get a native Redis TTL so stale keys disappear on their own.
"""

from __future__ import annotations

import logging
import math
import time

from vehicledata.cache.base_cache_store import BaseCacheStore
from vehicledata.cache.models import CacheEntry
from vehicledata.cache.serialization import decode_entry, encode_entry

logger = logging.getLogger(__name__)


class RedisCacheStore(BaseCacheStore):
    """Redis-backed durable store using the asyncio client."""

    def __init__(self, redis_url: str, key_prefix: str = "vehicledata:cache:") -> None:
        try:
            import redis.asyncio as aioredis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = aioredis.Redis.from_url(redis_url, decode_responses=True)
        self._prefix = key_prefix

    async def get(self, key: str) -> CacheEntry | None:
        data = await self._client.get(self._prefix + key)
        if data is None:
            return None
        return decode_entry(data)

    async def put(self, key: str, entry: CacheEntry) -> None:
        ttl = entry.remaining_seconds(time.time())
        if ttl is None:
            await self._client.set(self._prefix + key, encode_entry(entry))
        elif ttl > 0:
            await self._client.set(
                self._prefix + key, encode_entry(entry), ex=max(1, math.ceil(ttl))
            )

    async def delete(self, key: str) -> None:
        await self._client.delete(self._prefix + key)

    async def clear(self) -> None:
        keys = [k async for k in self._client.scan_iter(match=f"{self._prefix}*")]
        if keys:
            await self._client.delete(*keys)

    async def close(self) -> None:
        await self._client.aclose()
