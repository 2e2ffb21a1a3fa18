"""Cache handle with atomic hash rebuilds and typed accessors.

Architecture:
    - Cache: immutable handle over a redis.asyncio client and resolved
      CacheOptions, shared by every caller for the lifetime of the process
    - CacheLookup: (value, found) result of every read accessor

Atomic Rebuilds:
    A full replacement of a hash is staged under a uniquely named temporary
    key and published with a single RENAME over the destination key, so a
    reader sees either the complete old mapping or the complete new one.

    The staging HSET, the RENAME, the EXPIRE and (for an empty mapping) the
    HDEL of the sentinel field are sent as one non-transactional pipeline.
    The pipeline only saves round trips. Atomicity comes from RENAME alone,
    and a failed pipeline is not rolled back.

    Two concurrent rebuilds of the same key stage into different keys and
    race on RENAME: the last one to land wins. Readers never observe a mix
    of the two, but callers cannot tell which rebuild won.

Absence vs Errors:
    A missing key or field is reported as CacheLookup(default, False) and is
    never an exception. Redis failures raise StoreError (StoreTimeoutError
    when the operation's deadline expires), unreadable payloads raise
    DecodeError.

Usage:
    cache = Cache(redis, CacheOptions(key_prefix="svc", ttl=120))

    key = cache.key("group", "by_id")
    await cache.atomic_replace_hash_encoded(key, {"9": group9, "3": group3})

    group, found = await cache.hget_encoded(key, "9", model=Group)
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union

from redis import asyncio as aioredis
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from rediscache.cache.keys import build_key, staging_key
from rediscache.cache.serializer import Codec, get_codec
from rediscache.config import CacheOptions
from rediscache.errors import DecodeError, EncodeError, StoreError, StoreTimeoutError

logger = logging.getLogger(__name__)

# Placeholder field that keeps the staging key alive when the new mapping is
# empty, since RENAME fails on a missing source key.
SENTINEL_FIELD = "___"


class CacheLookup(NamedTuple):
    """Result of a read accessor.

    Attributes:
        value: Decoded value, or the caller's default when not found
        found: False when the key or field does not exist
    """

    value: Any
    found: bool


def _text(raw: Union[str, bytes]) -> str:
    # Bytes that are not UTF-8 map to lone surrogates and round-trip with
    # str.encode("utf-8", "surrogateescape")
    return raw.decode("utf-8", "surrogateescape") if isinstance(raw, bytes) else raw


class Cache:
    """Shared, read-only cache handle.

    Args:
        redis_client: Async Redis client (connection pool owned by the caller)
        options: Cache options; unset values are replaced by defaults
        codec: Value codec or format name ("json" or "msgpack")

    Example:
        cache = Cache(get_redis_pool(), CacheOptions(key_prefix="svc"))
        await cache.set_snapshot(cache.key("course", "list"), courses)
        courses, found = await cache.try_get_snapshot(cache.key("course", "list"))
    """

    __slots__ = ("_redis", "_options", "_codec")

    def __init__(
        self,
        redis_client: aioredis.Redis,
        options: Optional[CacheOptions] = None,
        codec: Union[Codec, str] = "json",
    ):
        object.__setattr__(self, "_redis", redis_client)
        object.__setattr__(self, "_options", (options or CacheOptions()).with_defaults())
        object.__setattr__(self, "_codec", codec if isinstance(codec, Codec) else get_codec(codec))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Cache is read-only, cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Cache is read-only, cannot delete '{name}'")

    @property
    def redis(self) -> aioredis.Redis:
        return self._redis

    @property
    def options(self) -> CacheOptions:
        return self._options

    @property
    def codec(self) -> Codec:
        return self._codec

    def __repr__(self) -> str:
        return (
            f"Cache(prefix={self._options.key_prefix}, "
            f"ttl={self._options.ttl}, "
            f"codec={self._codec!r})"
        )

    # ------------------------------------------------------------------
    # Keys & deadlines
    # ------------------------------------------------------------------

    def key(self, *parts: str) -> str:
        """Build a key under this handle's prefix (see build_key)."""
        return build_key(self._options.key_prefix, *parts)

    @asynccontextmanager
    async def _deadline(self, seconds: float, key: str):
        """Bound the enclosed Redis calls and translate their failures."""
        try:
            async with asyncio.timeout(seconds):
                yield
        except (TimeoutError, RedisTimeoutError) as e:
            raise StoreTimeoutError(
                f"Redis operation on '{key}' exceeded {seconds}s", key=key
            ) from e
        except RedisError as e:
            raise StoreError(f"Redis operation on '{key}' failed: {e}", key=key) from e

    # ------------------------------------------------------------------
    # Atomic rebuilds
    # ------------------------------------------------------------------

    async def atomic_replace_hash(self, key: str, mapping: Mapping[str, str]) -> List[str]:
        """
        Replace the whole hash at ``key`` with ``mapping`` atomically.

        Args:
            key: Destination key
            mapping: New field -> string value pairs (may be empty)

        Returns:
            Omitted fields (always empty; kept for symmetry with
            atomic_replace_hash_encoded)

        Raises:
            StoreError: If the pipeline fails or times out. The destination
                state is then whatever Redis applied before the failure.
        """
        await self._publish(key, dict(mapping))
        return []

    async def atomic_replace_hash_encoded(
        self,
        key: str,
        objects: Mapping[str, Any],
        *,
        strict: bool = False,
    ) -> List[str]:
        """
        Replace the whole hash at ``key`` with encoded ``objects`` atomically.

        Each value is encoded independently with the handle's codec. By
        default a value that cannot be encoded is left out of the new
        mapping and its field is reported back; with ``strict=True`` the
        first failure aborts the rebuild before Redis is touched.

        Args:
            key: Destination key
            objects: New field -> value pairs (may be empty)
            strict: Raise instead of omitting unencodable values

        Returns:
            Fields that were omitted because their value failed to encode

        Raises:
            EncodeError: If ``strict`` and a value cannot be encoded
            StoreError: If the pipeline fails or times out
        """
        encoded: Dict[str, bytes] = {}
        omitted: List[str] = []
        for field, obj in objects.items():
            try:
                encoded[field] = self._codec.encode(obj)
            except EncodeError as e:
                if strict:
                    e.key, e.field = key, field
                    raise
                logger.warning(f"Rebuild of {key}: omitting field '{field}' ({e})")
                omitted.append(field)

        await self._publish(key, encoded)
        return omitted

    async def _publish(self, key: str, mapping: Dict[str, Union[str, bytes]]) -> None:
        tmp_key = staging_key(key, str(uuid.uuid4()))

        async with self._deadline(self._options.pipeline_timeout, key):
            async with self._redis.pipeline(transaction=False) as pipe:
                if mapping:
                    pipe.hset(tmp_key, mapping=mapping)
                else:
                    pipe.hset(tmp_key, SENTINEL_FIELD, SENTINEL_FIELD)

                pipe.rename(tmp_key, key)
                pipe.expire(key, self._options.ttl)

                # The sentinel is removed from the published key, after RENAME
                if not mapping:
                    pipe.hdel(key, SENTINEL_FIELD)

                await pipe.execute()

        logger.debug(f"Cache REBUILD: {key} (fields={len(mapping)}, ttl={self._options.ttl})")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def set_snapshot(self, key: str, value: Any) -> None:
        """
        Store ``value`` encoded under ``key`` with the configured TTL.

        Raises:
            EncodeError: If the value cannot be encoded (nothing is written)
            StoreError: If the write fails or times out
        """
        try:
            raw = self._codec.encode(value)
        except EncodeError as e:
            e.key = key
            raise

        async with self._deadline(self._options.write_timeout, key):
            await self._redis.set(key, raw, ex=self._options.ttl)
        logger.debug(f"Cache SET: {key} (ttl={self._options.ttl})")

    async def try_get_snapshot(
        self,
        key: str,
        model: Optional[Any] = None,
        default: Any = None,
    ) -> CacheLookup:
        """
        Read and decode the snapshot stored under ``key``.

        Args:
            key: Snapshot key
            model: Optional type to validate the decoded value into
            default: Value returned when the key does not exist

        Returns:
            CacheLookup(value, True) on a hit, CacheLookup(default, False)
            when the key is absent

        Raises:
            StoreError: If the read fails or times out
            DecodeError: If the stored bytes cannot be decoded into ``model``
        """
        async with self._deadline(self._options.read_timeout, key):
            raw = await self._redis.get(key)
        return self._decoded(raw, key, None, model, default)

    # ------------------------------------------------------------------
    # Hash fields
    # ------------------------------------------------------------------

    async def hget_encoded(
        self,
        key: str,
        field: str,
        model: Optional[Any] = None,
        default: Any = None,
    ) -> CacheLookup:
        """
        Read and decode one field of the hash at ``key``.

        Same contract as try_get_snapshot, applied to HGET.
        """
        async with self._deadline(self._options.read_timeout, key):
            raw = await self._redis.hget(key, field)
        return self._decoded(raw, key, field, model, default)

    async def hget_string(self, key: str, field: str, default: Optional[str] = None) -> CacheLookup:
        """Read one field of the hash at ``key`` as text, without decoding.

        Stored bytes that are not valid UTF-8 are returned with surrogate
        escapes instead of raising.
        """
        async with self._deadline(self._options.read_timeout, key):
            raw = await self._redis.hget(key, field)
        if raw is None:
            logger.debug(f"Cache MISS: {key}[{field}]")
            return CacheLookup(default, False)
        return CacheLookup(_text(raw), True)

    async def hget_all_strings(self, key: str) -> Dict[str, str]:
        """Read the whole hash at ``key`` as text ({} when absent)."""
        async with self._deadline(self._options.read_timeout, key):
            raw = await self._redis.hgetall(key)
        return {_text(f): _text(v) for f, v in raw.items()}

    def _decoded(
        self,
        raw: Optional[Union[str, bytes]],
        key: str,
        field: Optional[str],
        model: Optional[Any],
        default: Any,
    ) -> CacheLookup:
        where = key if field is None else f"{key}[{field}]"
        if raw is None:
            logger.debug(f"Cache MISS: {where}")
            return CacheLookup(default, False)

        try:
            value = self._codec.decode(raw, model=model)
        except DecodeError as e:
            e.key, e.field = key, field
            raise
        logger.debug(f"Cache HIT: {where}")
        return CacheLookup(value, True)
