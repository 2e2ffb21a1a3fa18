"""Exceptions raised by the cache layer.

A missing key or field is never an exception: accessors report it through
CacheLookup.found. Everything else is raised to the caller and never retried.
"""

from typing import Optional


class CacheError(Exception):
    """Base class for cache errors."""


class EncodeError(CacheError):
    """Raised when an outgoing value cannot be serialized."""

    def __init__(self, message: str, key: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.field = field


class DecodeError(CacheError):
    """Raised when stored bytes cannot be deserialized into the requested type."""

    def __init__(self, message: str, key: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.key = key
        self.field = field


class StoreError(CacheError):
    """Raised on any transport or protocol failure from Redis."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class StoreTimeoutError(StoreError):
    """Raised when an operation's deadline expires before Redis answers."""
