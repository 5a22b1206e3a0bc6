# src/logging/context.py — v3
"""Contextual logging support: attach request_id, source and cache_key to log records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

# Context variables for structured logging, bound for the duration of a facade call.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_source: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source", default=None
)
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    source: str | None = None
    cache_key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        source=_source.get(),
        cache_key=_cache_key.get(),
    )


@contextmanager
def bound_context(
    request_id: str | None = None,
    source: str | None = None,
    cache_key: str | None = None,
) -> Iterator[LogContext]:
    """Bind context variables for a block and restore the previous values on exit.

    None leaves a variable as it is.
    """
    tokens: list[tuple[contextvars.ContextVar[str | None], contextvars.Token[str | None]]] = []
    for var, value in ((_request_id, request_id), (_source, source), (_cache_key, cache_key)):
        if value is not None:
            tokens.append((var, var.set(value)))
    try:
        yield get_context()
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _source.set(None)
    _cache_key.set(None)
