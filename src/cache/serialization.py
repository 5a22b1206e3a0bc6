# src/cache/serialization.py — v1
"""JSON envelope codec for durable cache entries.

Envelope on the wire: ``{"payload": ..., "expiresAt": <epoch ms>}``.
A plain JSON round trip turns datetimes into strings, so decoding walks the
payload and turns ISO-8601 timestamp strings back into ``datetime`` values.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any

from pydantic_core import to_jsonable_python

from vehicledata.cache.models import CacheEntry

_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")


class EnvelopeDecodeError(ValueError):
    """Stored text is not a cache envelope."""


def encode_entry(entry: CacheEntry) -> str:
    """Serialize an entry; pydantic models and datetimes become JSON values."""
    expires_ms = None if entry.expires_at is None else int(entry.expires_at * 1000)
    return json.dumps(
        {"payload": to_jsonable_python(entry.payload), "expiresAt": expires_ms}
    )


def decode_entry(text: str) -> CacheEntry:
    """Parse an envelope and revive embedded timestamps."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise EnvelopeDecodeError(f"Invalid cache envelope: {e}") from e
    if not isinstance(raw, dict) or "payload" not in raw or "expiresAt" not in raw:
        raise EnvelopeDecodeError("Cache envelope missing payload/expiresAt")

    expires_ms = raw["expiresAt"]
    expires_at = None if expires_ms is None else float(expires_ms) / 1000.0
    return CacheEntry(payload=revive_datetimes(raw["payload"]), expires_at=expires_at)


def revive_datetimes(value: Any) -> Any:
    """Recursively convert ISO-8601 timestamp strings into datetimes."""
    if isinstance(value, str):
        if _ISO_DATETIME.match(value):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                return value
        return value
    if isinstance(value, list):
        return [revive_datetimes(v) for v in value]
    if isinstance(value, dict):
        return {k: revive_datetimes(v) for k, v in value.items()}
    return value
