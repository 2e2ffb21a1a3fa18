"""Redis connection pool and process-wide cache handle.

This module owns the async Redis connection pool and the single Cache
handle built on top of it. The handle is created once at startup and is
read-only afterwards, so it can be shared by every coroutine without locking.

Usage:
    # At application startup
    await init_redis_pool()
    cache = init_cache(CacheOptions(key_prefix="svc"))

    # In application code
    cache = get_cache()
    await cache.set_snapshot(cache.key("course", "list"), courses)

    # At application shutdown
    await close_redis_pool()
"""

import os
import logging
from typing import Optional

from redis import asyncio as aioredis
from dotenv import load_dotenv

from rediscache.cache.handle import Cache
from rediscache.config import CacheOptions

load_dotenv()

logger = logging.getLogger(__name__)


class RedisConfig:
    """Configuration for Redis connection pool.

    Loads settings from environment variables with sensible defaults.
    """

    def __init__(self):
        """Initialize Redis configuration from environment variables."""
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", "6379"))
        self.db = int(os.getenv("REDIS_DB", "0"))
        self.password = os.getenv("REDIS_PASSWORD", None)
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", "10"))
        self.socket_timeout = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))
        self.socket_connect_timeout = float(os.getenv("REDIS_SOCKET_CONNECT_TIMEOUT", "5"))
        self.retry_on_timeout = os.getenv("REDIS_RETRY_ON_TIMEOUT", "true").lower() == "true"

    @property
    def url(self) -> str:
        """Connection URL (includes the password when set)."""
        redis_url = "redis://"
        if self.password:
            redis_url += f":{self.password}@"
        return redis_url + f"{self.host}:{self.port}/{self.db}"

    def __repr__(self) -> str:
        """String representation (safe - no password)."""
        return (
            f"RedisConfig("
            f"host={self.host}, "
            f"port={self.port}, "
            f"db={self.db}, "
            f"max_connections={self.max_connections})"
        )


# Global singletons
_redis_pool: Optional[aioredis.Redis] = None
_redis_config: Optional[RedisConfig] = None
_cache: Optional[Cache] = None


async def init_redis_pool() -> aioredis.Redis:
    """Initialize the global async Redis connection pool.

    Returns:
        aioredis.Redis: The initialized Redis client with connection pool

    Raises:
        Exception: If pool initialization fails (the ping is not answered)

    Notes:
        - Safe to call multiple times (returns existing pool if already initialized)
        - Responses are not decoded: cached values are byte blobs
    """
    global _redis_pool, _redis_config

    if _redis_pool is not None:
        logger.info("Redis pool already initialized, returning existing pool")
        return _redis_pool

    _redis_config = RedisConfig()
    logger.info(f"Initializing Redis pool with config: {_redis_config}")

    try:
        _redis_pool = aioredis.from_url(
            _redis_config.url,
            max_connections=_redis_config.max_connections,
            socket_timeout=_redis_config.socket_timeout,
            socket_connect_timeout=_redis_config.socket_connect_timeout,
            retry_on_timeout=_redis_config.retry_on_timeout,
            decode_responses=False,
        )

        await _redis_pool.ping()
        logger.info(f"Redis pool initialized: {_redis_config.host}:{_redis_config.port}")
        return _redis_pool

    except Exception as e:
        logger.error(f"Failed to initialize Redis pool: {e}", exc_info=True)
        _redis_pool = None
        _redis_config = None
        raise


def get_redis_pool() -> aioredis.Redis:
    """Get the global async Redis connection pool.

    Raises:
        RuntimeError: If pool has not been initialized (call init_redis_pool() first)
    """
    if _redis_pool is None:
        raise RuntimeError(
            "Redis pool has not been initialized. "
            "Call init_redis_pool() during application startup."
        )
    return _redis_pool


def init_cache(options: Optional[CacheOptions] = None, codec: str = "json") -> Cache:
    """Build the process-wide Cache handle over the global pool.

    Args:
        options: Cache options (default: loaded from CACHE_* env vars)
        codec: Value format ("json" or "msgpack")

    Returns:
        The shared Cache handle

    Raises:
        RuntimeError: If the pool has not been initialized
    """
    global _cache

    _cache = Cache(get_redis_pool(), options or CacheOptions.from_env(), codec=codec)
    logger.info(f"Cache handle initialized: {_cache!r}")
    return _cache


def get_cache() -> Cache:
    """Get the process-wide Cache handle.

    Raises:
        RuntimeError: If init_cache() has not been called
    """
    if _cache is None:
        raise RuntimeError(
            "Cache has not been initialized. "
            "Call init_cache() after init_redis_pool() during application startup."
        )
    return _cache


async def close_redis_pool():
    """Close the global Redis pool and drop the cache handle."""
    global _redis_pool, _redis_config, _cache

    if _redis_pool is None:
        logger.info("Redis pool is not initialized, nothing to close")
        return

    try:
        await _redis_pool.aclose()
        logger.info("Redis pool closed successfully")
    except Exception as e:
        logger.error(f"Error closing Redis pool: {e}", exc_info=True)
    finally:
        _redis_pool = None
        _redis_config = None
        _cache = None


async def check_redis_health() -> dict:
    """
    Check the health and status of the Redis connection pool.

    Returns:
        dict: Redis health status including:
            - status: "healthy", "degraded", or "unavailable"
            - host, port, db: Redis server details
            - error: Error message if unhealthy
    """
    if _redis_pool is None:
        return {
            "status": "unavailable",
            "error": "Pool not initialized"
        }

    try:
        await _redis_pool.ping()
        return {
            "status": "healthy",
            "host": _redis_config.host if _redis_config else None,
            "port": _redis_config.port if _redis_config else None,
            "db": _redis_config.db if _redis_config else None,
            "max_connections": _redis_config.max_connections if _redis_config else None,
        }

    except Exception as e:
        logger.error(f"Redis health check failed: {e}", exc_info=True)
        return {
            "status": "degraded",
            "error": str(e),
            "host": _redis_config.host if _redis_config else None,
            "port": _redis_config.port if _redis_config else None,
        }
