# src/cache/base_cache_store.py — v2
"""Abstract durable cache store interface (shared, survives restarts)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vehicledata.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for durable cache backends.

    Keys are logical cache keys (e.g. ``recalls:Jeep:Cherokee:2017``); each
    backend applies its own namespace prefix.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve an entry, expired or not; None if absent."""

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove an entry."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry under this store's namespace."""

    async def close(self) -> None:
        """Release connections. Default: nothing to release."""
