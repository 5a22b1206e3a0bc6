# src/cache/layered_cache.py — v2
"""Two-tier read-through cache: memory tier in front of a durable store.

Lookup order for a key is fixed: memory, then durable, then a live fetch.
A durable hit backfills the memory tier. A live fetch is written to memory
synchronously and to the durable tier in a background task whose failure is
logged and dropped. Durable-tier errors never reach the caller.

Concurrent misses on the same key may each call the fetcher; there is no
single-flight deduplication.

Usage:
    cache = LayeredCache(MemoryCache(), SqliteCacheStore("cache.db"))
    recalls = await cache.get("recalls:Jeep:Cherokee:2017", fetch, 7 * 86400,
                              schema=list[RecallRecord])
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import TypeAdapter

from vehicledata.cache.base_cache_store import BaseCacheStore
from vehicledata.cache.memory_cache import MemoryCache
from vehicledata.cache.models import CacheEntry, detached

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LayeredCache:
    """Memory tier backed by an optional durable store."""

    def __init__(
        self,
        memory: MemoryCache | None = None,
        store: BaseCacheStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._clock = clock
        self._memory = memory if memory is not None else MemoryCache(clock=clock)
        self._store = store
        self._pending: set[asyncio.Task[None]] = set()
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    @property
    def memory(self) -> MemoryCache:
        return self._memory

    @property
    def store(self) -> BaseCacheStore | None:
        return self._store

    async def get(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl_seconds: int | None,
        schema: Any = None,
    ) -> T:
        """Return the cached value for key, fetching it on a miss.

        Args:
            key: Logical cache key.
            fetch: Coroutine factory performing the external call.
            ttl_seconds: Lifetime of a fresh value. None keeps it in the
                memory tier for the process lifetime and skips the durable tier.
            schema: Type used to rebuild durable-tier payloads (e.g.
                ``list[RecallRecord]``). None returns the decoded JSON as is.
        """
        entry = self._memory.get_entry(key)
        if entry is not None:
            return detached(entry.payload)

        if ttl_seconds is not None:
            entry = await self._read_durable(key, schema)
            if entry is not None:
                self._memory.set_entry(key, entry)
                logger.debug("Cache HIT durable: %s", key)
                return detached(entry.payload)

        logger.debug("Cache MISS: %s, fetching", key)
        value = await fetch()
        self.set(key, value, ttl_seconds)
        return detached(value)

    def set(self, key: str, value: Any, ttl_seconds: int | None) -> None:
        """Write to memory now and to the durable tier in the background."""
        entry = CacheEntry.create(value, ttl_seconds, now=self._clock())
        self._memory.set_entry(key, entry)
        if self._store is not None and ttl_seconds is not None:
            self._schedule(self._write_durable(self._store, key, entry))

    async def delete(self, key: str) -> None:
        self._memory.delete(key)
        if self._store is not None:
            try:
                await self._store.delete(key)
            except Exception:
                logger.warning("Durable cache delete failed: %s", key, exc_info=True)

    async def clear(self) -> None:
        """Empty both tiers. Pending background writes are awaited first."""
        await self.drain()
        self._memory.clear()
        if self._store is not None:
            try:
                await self._store.clear()
            except Exception:
                logger.warning("Durable cache clear failed", exc_info=True)

    async def drain(self) -> None:
        """Wait for in-flight durable writes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._store is not None:
            await self._store.close()

    # --- Durable tier ---

    async def _read_durable(self, key: str, schema: Any) -> CacheEntry | None:
        if self._store is None:
            return None
        try:
            entry = await self._store.get(key)
        except Exception:
            logger.warning("Durable cache read failed: %s", key, exc_info=True)
            return None
        if entry is None:
            return None

        if not entry.is_valid(self._clock()):
            logger.debug("Cache EXPIRED durable: %s", key)
            try:
                await self._store.delete(key)
            except Exception:
                logger.warning("Durable cache purge failed: %s", key, exc_info=True)
            return None

        if schema is None:
            return entry
        try:
            payload = self._adapter(schema).validate_python(entry.payload)
        except Exception:
            logger.warning("Durable cache entry unreadable: %s", key, exc_info=True)
            return None
        return CacheEntry(payload=payload, expires_at=entry.expires_at)

    async def _write_durable(self, store: BaseCacheStore, key: str, entry: CacheEntry) -> None:
        try:
            await store.put(key, entry)
            logger.debug("Cache SET durable: %s", key)
        except Exception:
            logger.warning("Durable cache write failed: %s", key, exc_info=True)

    def _schedule(self, coro: Awaitable[None]) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)  # type: ignore[arg-type]
        except RuntimeError:
            # No running loop (sync caller): the write is dropped.
            coro.close()  # type: ignore[attr-defined]
            logger.debug("No event loop, durable write skipped")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _adapter(self, schema: Any) -> TypeAdapter[Any]:
        adapter = self._adapters.get(schema)
        if adapter is None:
            adapter = TypeAdapter(schema)
            self._adapters[schema] = adapter
        return adapter
