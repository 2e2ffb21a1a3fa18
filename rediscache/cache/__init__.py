"""Cache layer over Redis.

Key Modules:
    - keys: Key builders and text normalization
    - serializer: JSON/msgpack codecs with typed decoding
    - handle: Cache handle with atomic hash rebuilds and typed accessors

Example:
    from rediscache.cache import Cache
    from rediscache.config import CacheOptions

    cache = Cache(redis, CacheOptions(key_prefix="svc"))
    await cache.atomic_replace_hash(cache.key("group", "name2id"), {"backend": "9"})
    group_id, found = await cache.hget_string(cache.key("group", "name2id"), "backend")
"""

from .keys import build_key, normalize, staging_key
from .serializer import Codec, JsonCodec, MsgpackCodec, SerializationFormat, get_codec
from .handle import Cache, CacheLookup, SENTINEL_FIELD

__all__ = [
    # Keys
    "build_key",
    "normalize",
    "staging_key",
    # Serialization
    "Codec",
    "JsonCodec",
    "MsgpackCodec",
    "SerializationFormat",
    "get_codec",
    # Handle
    "Cache",
    "CacheLookup",
    "SENTINEL_FIELD",
]
