"""Redis cache with atomic hash rebuilds and typed snapshot accessors."""

__version__ = "1.0.0"

from .config import CacheOptions
from .errors import CacheError, DecodeError, EncodeError, StoreError, StoreTimeoutError
from .cache import Cache, CacheLookup, build_key, normalize

__all__ = [
    "Cache",
    "CacheLookup",
    "CacheOptions",
    "build_key",
    "normalize",
    # Errors
    "CacheError",
    "DecodeError",
    "EncodeError",
    "StoreError",
    "StoreTimeoutError",
]
