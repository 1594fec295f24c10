"""
Compressed JSON object cache for Valkey.

Stores arbitrary JSON documents as base64-encoded zlib payloads in scalar
and hash keys, with TTL inspection and an explicit connection lifecycle.
"""

from .exceptions import (
    ObjectCacheError,
    ValkeyConnectionError,
    TypeMismatchError,
    DecodeError,
    ValkeyConfigurationError,
)
from .config import ValkeyConfig
from .codec import JSONValue, NULL_MARKER, encode, decode
from .client import ConnectionState, ValkeyClient
from .utils import (
    TTL_KEY_MISSING,
    TTL_NO_EXPIRY,
    TTLPreset,
    TTLState,
    TTLStatus,
)
from .manager import CacheStats, ObjectCache

__all__ = [
    # Errors
    "ObjectCacheError",
    "ValkeyConnectionError",
    "TypeMismatchError",
    "DecodeError",
    "ValkeyConfigurationError",

    # Configuration
    "ValkeyConfig",

    # Codec
    "JSONValue",
    "NULL_MARKER",
    "encode",
    "decode",

    # Client
    "ConnectionState",
    "ValkeyClient",

    # Cache
    "ObjectCache",
    "CacheStats",

    # Utilities
    "TTL_KEY_MISSING",
    "TTL_NO_EXPIRY",
    "TTLPreset",
    "TTLState",
    "TTLStatus",
]
