# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

JSON and SQLite stores run against the local filesystem. Redis tests need a
live server and are skipped unless VEHICLEDATA_TEST_REDIS_URL is set, e.g.
``redis://localhost:6379/15``.
"""

from __future__ import annotations

import os
import uuid

import pytest


# ── Pytest markers ──────────────────────────────────────────────

def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring a Redis server")


@pytest.fixture
def redis_url() -> str:
    url = os.environ.get("VEHICLEDATA_TEST_REDIS_URL")
    if not url:
        pytest.skip("VEHICLEDATA_TEST_REDIS_URL not set")
    return url


@pytest.fixture
def key_prefix() -> str:
    """Unique namespace per test so runs never see each other's entries."""
    return f"vehicledata:test:{uuid.uuid4().hex[:8]}:"
