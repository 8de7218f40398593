"""Shared fixtures for integration tests."""

import os

import pytest

# Skip all integration tests unless RUN_LAAKHAY_CACHE_REDIS_TESTS=1
pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_LAAKHAY_CACHE_REDIS_TESTS") != "1",
    reason="Requires a Redis server. Set RUN_LAAKHAY_CACHE_REDIS_TESTS=1 to run",
)
