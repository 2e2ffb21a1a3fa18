"""Serialization utilities for Redis caching.

This module turns Python objects into the byte blobs stored in Redis and
back. Two wire formats are supported, and decoded values can optionally be
validated into a target type with pydantic.

Supported Formats:
    - JSON: Human-readable, good for debugging (default)
    - msgpack: Binary format, more efficient for storage and network

Special Type Handling (encoding):
    - pydantic models: Dumped in JSON mode
    - dataclasses: Converted to dicts
    - datetime/date/time: Converted to ISO format strings
    - Decimal: Converted to float
    - UUID: Converted to string
    - bytes: Passed through (msgpack only; JSON has no byte type and
      rejects them with EncodeError)
    - set: Converted to list

Typed Decoding:
    Passing ``model`` to ``Codec.decode`` validates the decoded value with
    ``pydantic.TypeAdapter(model)``, so ISO strings come back as datetimes,
    dicts come back as models or dataclasses, and a payload of the wrong
    shape is reported as a DecodeError.

Usage:
    from rediscache.cache.serializer import get_codec

    codec = get_codec("json")
    raw = codec.encode({"id": 9, "name": "Backend"})
    group = codec.decode(raw, model=Group)
"""

import json
import logging
import dataclasses
from datetime import datetime, date, time
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Optional, Union
from uuid import UUID

import msgpack
from msgpack.exceptions import UnpackException
from pydantic import BaseModel, TypeAdapter, ValidationError

from rediscache.errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)


# Serialization format enum
class SerializationFormat(str, Enum):
    """Supported serialization formats."""
    JSON = "json"
    MSGPACK = "msgpack"


# ============================================================================
# Type Hooks
# ============================================================================


def _common_default(obj: Any) -> Any:
    """Convert types shared by both formats, or raise TypeError."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")

    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)

    # Handle datetime objects
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()

    if isinstance(obj, Decimal):
        return float(obj)

    if isinstance(obj, UUID):
        return str(obj)

    if isinstance(obj, (set, frozenset)):
        return list(obj)

    raise TypeError(f"Object of type {type(obj).__name__} is not serializable")


def _json_default(obj: Any) -> Any:
    """
    Custom JSON encoder for special types.

    Args:
        obj: Object to encode

    Returns:
        JSON-serializable representation

    Raises:
        TypeError: If object type is not supported, bytes included
    """
    if isinstance(obj, (bytes, bytearray)):
        # A text form would not decode back to bytes
        raise TypeError("bytes are not supported by the json format, use msgpack")
    return _common_default(obj)


def _msgpack_default(obj: Any) -> Any:
    """Custom msgpack encoder for special types (bytes are native)."""
    return _common_default(obj)


@lru_cache(maxsize=256)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


# ============================================================================
# Codecs
# ============================================================================


class Codec:
    """Bidirectional byte codec for arbitrary values.

    Subclasses implement ``_dumps`` and ``_loads``; this class adds error
    translation and optional typed validation.
    """

    format: SerializationFormat

    def _dumps(self, value: Any) -> bytes:
        raise NotImplementedError

    def _loads(self, raw: bytes) -> Any:
        raise NotImplementedError

    def encode(self, value: Any) -> bytes:
        """
        Serialize a value to bytes.

        Raises:
            EncodeError: If the value cannot be serialized
        """
        try:
            return self._dumps(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise EncodeError(f"Failed to serialize to {self.format.value}: {e}") from e

    def decode(self, raw: Union[str, bytes], model: Optional[Any] = None) -> Any:
        """
        Deserialize bytes, optionally validating into ``model``.

        Args:
            raw: Stored bytes (str is accepted and UTF-8 encoded)
            model: Target type (pydantic model, dataclass, ``list[int]``...).
                   None returns the plain decoded value.

        Raises:
            DecodeError: If the bytes cannot be parsed or do not match ``model``
        """
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        try:
            value = self._loads(raw)
        except (ValueError, TypeError, UnpackException) as e:
            raise DecodeError(f"Failed to deserialize from {self.format.value}: {e}") from e

        if model is None:
            return value
        try:
            return _adapter(model).validate_python(value)
        except ValidationError as e:
            raise DecodeError(f"Stored value does not match {model!r}: {e}") from e

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JsonCodec(Codec):
    """Compact UTF-8 JSON."""

    format = SerializationFormat.JSON

    def _dumps(self, value: Any) -> bytes:
        return json.dumps(value, default=_json_default, separators=(",", ":")).encode("utf-8")

    def _loads(self, raw: bytes) -> Any:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        return json.loads(raw.decode("utf-8"))


class MsgpackCodec(Codec):
    """msgpack with binary type support."""

    format = SerializationFormat.MSGPACK

    def _dumps(self, value: Any) -> bytes:
        return msgpack.packb(value, default=_msgpack_default, use_bin_type=True)

    def _loads(self, raw: bytes) -> Any:
        return msgpack.unpackb(raw, raw=False)


_CODECS = {
    SerializationFormat.JSON: JsonCodec,
    SerializationFormat.MSGPACK: MsgpackCodec,
}


def get_codec(format: Union[str, SerializationFormat] = "json") -> Codec:
    """
    Get a codec for a serialization format.

    Args:
        format: "json" or "msgpack"

    Returns:
        Codec instance

    Raises:
        ValueError: If the format is unknown

    Example:
        >>> get_codec("msgpack")
        MsgpackCodec()
    """
    try:
        if isinstance(format, SerializationFormat):
            fmt = format
        else:
            fmt = SerializationFormat(str(format).lower())
    except ValueError:
        raise ValueError(f"Invalid format: {format}. Use 'json' or 'msgpack'") from None
    return _CODECS[fmt]()
