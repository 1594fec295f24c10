"""
Object cache facade.

``ObjectCache`` stores arbitrary JSON documents in Valkey. Scalar keys hold
one encoded document each, hash keys hold one encoded document per field,
and expiration operations work on raw keys without touching the codec.

Errors are never swallowed: a missing key or field is the only case that
yields ``None``. Type mismatches, corrupt payloads and transport failures
raise to the caller, and there is no retry.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from valkey.asyncio import Valkey
from valkey.exceptions import ConnectionError, TimeoutError, ResponseError

from .client import ValkeyClient
from .codec import NULL_MARKER, JSONValue, decode, encode
from .exceptions import DecodeError, TypeMismatchError, ValkeyConnectionError
from .utils import TTLPreset, TTLStatus, normalize_ttl

logger = logging.getLogger(__name__)

WRONGTYPE_PREFIX = "WRONGTYPE"


@dataclass
class CacheStats:
    """Cache operation statistics."""

    hit_count: int = 0
    miss_count: int = 0
    set_count: int = 0
    delete_count: int = 0
    error_count: int = 0

    start_time: datetime = field(default_factory=datetime.now)

    @property
    def hit_ratio(self) -> float:
        """Calculate cache hit ratio."""
        total_reads = self.hit_count + self.miss_count
        return self.hit_count / total_reads if total_reads > 0 else 0.0

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    def record_read(self, found: bool) -> None:
        if found:
            self.hit_count += 1
        else:
            self.miss_count += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "set_count": self.set_count,
            "delete_count": self.delete_count,
            "error_count": self.error_count,
            "hit_ratio": self.hit_ratio,
            "uptime_seconds": self.uptime_seconds,
        }


class ObjectCache:
    """
    Cache of JSON documents on top of a connected ValkeyClient.

    Values are compressed and base64 encoded on the way in and decoded on
    the way out, see ``valkey_objcache.codec``.

    Usage:
        cache = await ObjectCache.create("valkey://localhost:6379/0")
        await cache.set("user:42", {"name": "Ada"}, ttl=60)
        user = await cache.get("user:42")
        await cache.quit()
    """

    def __init__(self, client: ValkeyClient):
        """
        Args:
            client: ValkeyClient owning the connection, normally connected
        """
        self.client = client
        self.stats = CacheStats()
        self._level = client.config.compression_level

    @classmethod
    async def create(
        cls, url: Optional[str] = None, password: Optional[str] = None, **options: Any
    ) -> "ObjectCache":
        """
        Connect a new client and wrap it in a cache.

        Args:
            url: Store endpoint, defaults to the environment
            password: Optional authentication credential
            **options: Other ValkeyConfig fields

        Raises:
            ValkeyConnectionError: If the connection cannot be established
        """
        client = await ValkeyClient.create(url, password=password, **options)
        return cls(client)

    def get_client(self) -> ValkeyClient:
        return self.client

    def is_connected(self) -> bool:
        return self.client.is_connected

    async def quit(self) -> bool:
        """Close the underlying connection. Returns True once closed."""
        return await self.client.close()

    def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.to_dict()
        stats["connection_state"] = self.client.state.value
        return stats

    async def _execute(self, command: str, key: str, operation: Callable[[Valkey], Awaitable[Any]]) -> Any:
        """
        Run one store command, translating client errors.

        Raises:
            TypeMismatchError: If the store answers WRONGTYPE
            ValkeyConnectionError: On transport errors, after moving the
                client to ERROR, or when the client is not connected
        """
        valkey_client = self.client.client
        try:
            return await operation(valkey_client)
        except ResponseError as e:
            self.stats.error_count += 1
            message = str(e)
            if message.startswith(WRONGTYPE_PREFIX):
                raise TypeMismatchError(message) from e
            raise
        except (ConnectionError, TimeoutError) as e:
            self.stats.error_count += 1
            await self.client.mark_error(e)
            raise ValkeyConnectionError(f"{command} {key} failed: {e}") from e

    def _encode(self, value: JSONValue) -> str:
        payload = encode(value, self._level)
        return NULL_MARKER if payload is None else payload

    def _record_read(self, raw: Optional[str]) -> bool:
        # a stored null marker reads back as None, so it counts as a miss
        found = raw is not None and raw != NULL_MARKER
        self.stats.record_read(found)
        return found

    def _decode(self, key: str, payload: Optional[str]) -> JSONValue:
        try:
            return decode(payload)
        except DecodeError:
            self.stats.error_count += 1
            logger.warning("Undecodable payload at key %s", key)
            raise

    # Scalar operations

    async def get(self, key: str) -> JSONValue:
        """
        Get the document stored at ``key``.

        Returns:
            JSONValue: The document, or None if the key does not exist

        Raises:
            TypeMismatchError: If the key holds a hash
            DecodeError: If the stored payload is corrupt
        """
        raw = await self._execute("GET", key, lambda c: c.get(key))
        found = self._record_read(raw)
        logger.debug("Cache %s: %s", "HIT" if found else "MISS", key)
        return self._decode(key, raw)

    async def set(self, key: str, value: JSONValue, ttl: Union[int, TTLPreset, None] = None) -> bool:
        """
        Store a document at ``key``.

        With a truthy ``ttl`` the value and its expiration are written by a
        single ``SET ... EX`` command.

        Args:
            key: Cache key
            value: JSON-serializable document
            ttl: Time to live in seconds or TTLPreset

        Returns:
            bool: The store's acknowledgement
        """
        seconds = normalize_ttl(ttl)
        payload = self._encode(value)
        result = await self._execute("SET", key, lambda c: c.set(key, payload, ex=seconds))
        self.stats.set_count += 1
        logger.debug("Cache SET: %s (TTL: %s)", key, seconds)
        return result

    async def delete(self, key: str) -> int:
        """Delete ``key`` whatever it holds. Returns 1 if removed, 0 if absent."""
        removed = await self._execute("DEL", key, lambda c: c.delete(key))
        self.stats.delete_count += removed
        return removed

    # Hash operations

    async def hget(self, key: str, field: str) -> JSONValue:
        """
        Get the document stored in ``field`` of hash ``key``.

        Returns None when either the key or the field is absent.
        """
        raw = await self._execute("HGET", key, lambda c: c.hget(key, field))
        self._record_read(raw)
        return self._decode(key, raw)

    async def hset(self, key: str, field: str, value: JSONValue) -> int:
        """
        Store a document in ``field`` of hash ``key``, creating the hash.

        Hash fields cannot expire individually; use ``expire`` on the key.

        Returns:
            int: 1 if the field is new, 0 if it was overwritten
        """
        payload = self._encode(value)
        created = await self._execute("HSET", key, lambda c: c.hset(key, field, payload))
        self.stats.set_count += 1
        return created

    async def hdel(self, key: str, field: str) -> int:
        """
        Remove ``field`` from hash ``key``.

        Removing the last field removes the key itself.

        Returns:
            int: 1 if removed, 0 if absent
        """
        removed = await self._execute("HDEL", key, lambda c: c.hdel(key, field))
        self.stats.delete_count += removed
        return removed

    async def hgetall(self, key: str) -> Dict[str, JSONValue]:
        """Get every field of hash ``key``, decoded. Empty dict if absent."""
        raw_fields = await self._execute("HGETALL", key, lambda c: c.hgetall(key))
        self.stats.record_read(bool(raw_fields))
        return {name: self._decode(key, payload) for name, payload in raw_fields.items()}

    async def hlen(self, key: str) -> int:
        return await self._execute("HLEN", key, lambda c: c.hlen(key))

    # Expiration operations

    async def expire(self, key: str, ttl: Union[int, TTLPreset]) -> bool:
        """
        Set or replace the expiration of an existing key.

        Returns:
            bool: True if the timeout was set, False if the key does not exist
        """
        return await self._execute("EXPIRE", key, lambda c: c.expire(key, int(ttl)))

    async def ttl(self, key: str) -> int:
        """
        Remaining time to live of ``key`` in seconds.

        The store returns -2 if the key does not exist and -1 if it exists
        without an expiration. Both are regular results.
        """
        return await self._execute("TTL", key, lambda c: c.ttl(key))

    async def ttl_status(self, key: str) -> TTLStatus:
        """``ttl`` mapped to MISSING / NO_EXPIRY / EXPIRING."""
        return TTLStatus.from_sentinel(await self.ttl(key))

    async def __aenter__(self):
        if not self.client.is_connected:
            await self.client.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client.is_connected:
            await self.client.close()
