"""Pytest configuration and shared fixtures for rediscache tests.

This module provides:
- Custom markers
- An in-memory Redis double and a Cache handle bound to it
- Environment isolation between tests
"""

import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path to allow imports from rediscache
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from rediscache.cache.handle import Cache
from rediscache.config import CacheOptions
from tests.fixtures.fake_redis import FakeRedis


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "unit: mark test as a unit test (fast, isolated)"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as an integration test (several components against the Redis double)"
    )


# ==================== Environment Fixtures ====================

@pytest.fixture(scope="function", autouse=True)
def isolate_environment():
    """Restore environment variables changed by a test."""
    original_env = os.environ.copy()

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ==================== Cache Fixtures ====================

@pytest.fixture
def test_options() -> CacheOptions:
    """Options used by the cache fixture."""
    return CacheOptions(
        ttl=120,
        key_prefix="test",
        read_timeout=0.3,
        write_timeout=0.3,
        pipeline_timeout=0.8,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Fresh in-memory Redis double."""
    return FakeRedis()


@pytest.fixture
def cache(fake_redis, test_options) -> Cache:
    """JSON Cache handle over the Redis double."""
    return Cache(fake_redis, test_options)


@pytest.fixture
def msgpack_cache(fake_redis, test_options) -> Cache:
    """msgpack Cache handle over the Redis double."""
    return Cache(fake_redis, test_options, codec="msgpack")
