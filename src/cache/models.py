# src/cache/models.py — v3
"""Cache entry envelope shared by the memory tier and the durable stores."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """A payload plus its absolute expiration instant (epoch seconds).

    ``expires_at`` of None means the entry never expires; such entries only
    live in the memory tier.
    """

    payload: Any
    expires_at: float | None

    @classmethod
    def create(
        cls, payload: Any, ttl_seconds: int | None, now: float | None = None
    ) -> CacheEntry:
        if ttl_seconds is None:
            return cls(payload=payload, expires_at=None)
        now = time.time() if now is None else now
        return cls(payload=payload, expires_at=now + ttl_seconds)

    def is_valid(self, now: float | None = None) -> bool:
        """Valid only while now is strictly before the expiration instant."""
        if self.expires_at is None:
            return True
        now = time.time() if now is None else now
        return now < self.expires_at

    def remaining_seconds(self, now: float | None = None) -> float | None:
        if self.expires_at is None:
            return None
        now = time.time() if now is None else now
        return max(self.expires_at - now, 0.0)


def detached(payload: Any) -> Any:
    """Shallow copy of a list or dict payload, so callers cannot edit the cached one.

    Records themselves are frozen models and are shared as is.
    """
    if isinstance(payload, list):
        return list(payload)
    if isinstance(payload, dict):
        return dict(payload)
    return payload
