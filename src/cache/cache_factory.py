# src/cache/cache_factory.py — v3
"""Factory for durable store and layered cache instantiation."""

from __future__ import annotations

from vehicledata.cache.base_cache_store import BaseCacheStore
from vehicledata.cache.layered_cache import LayeredCache
from vehicledata.cache.memory_cache import MemoryCache
from vehicledata.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore | None:
    """Instantiate the configured durable backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseCacheStore, or None when CACHE_BACKEND=none.
    """
    settings = settings or Settings()
    backend = settings.cache_backend
    prefix = settings.cache_key_prefix

    if backend == "none":
        return None

    if backend == "json":
        from vehicledata.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=settings.cache_root, key_prefix=prefix)

    if backend == "sqlite":
        from vehicledata.cache.sqlite_store import SqliteCacheStore
        db_path = settings.cache_root.expanduser() / "vehicledata_cache.db"
        return SqliteCacheStore(db_path=db_path, key_prefix=prefix)

    if backend == "redis":
        from vehicledata.cache.redis_store import RedisCacheStore
        if not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url, key_prefix=prefix)

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def create_layered_cache(settings: Settings | None = None) -> LayeredCache:
    """Build the process-wide layered cache. Call once at startup."""
    return LayeredCache(memory=MemoryCache(), store=create_cache_store(settings))
