"""
Shared fixtures for the object cache tests.

FakeValkey stands in for ``valkey.asyncio.Valkey`` with just the commands
the cache uses, including the WRONGTYPE error and the removal of a hash
whose last field is deleted.
"""

import pytest
from valkey.exceptions import ResponseError

from valkey_objcache import ObjectCache, ValkeyClient, ValkeyConfig
from valkey_objcache.client import ConnectionState

WRONGTYPE_MESSAGE = "WRONGTYPE Operation against a key holding the wrong kind of value"


class FakeValkey:
    """In-memory stand-in for the asyncio Valkey client."""

    def __init__(self):
        self.data = {}
        self.expiry = {}
        self.closed = False
        self.commands = []

    def _scalar(self, key):
        value = self.data.get(key)
        if isinstance(value, dict):
            raise ResponseError(WRONGTYPE_MESSAGE)
        return value

    def _hash(self, key):
        value = self.data.get(key)
        if value is not None and not isinstance(value, dict):
            raise ResponseError(WRONGTYPE_MESSAGE)
        return value

    async def ping(self):
        return True

    async def get(self, key):
        self.commands.append(("GET", key))
        return self._scalar(key)

    async def set(self, key, value, ex=None):
        self.commands.append(("SET", key, value, ex))
        self.data[key] = value
        if ex:
            self.expiry[key] = ex
        else:
            self.expiry.pop(key, None)
        return True

    async def delete(self, key):
        self.commands.append(("DEL", key))
        self.expiry.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def hget(self, key, field):
        self.commands.append(("HGET", key, field))
        fields = self._hash(key)
        return fields.get(field) if fields else None

    async def hset(self, key, field, value):
        self.commands.append(("HSET", key, field, value))
        fields = self._hash(key)
        if fields is None:
            fields = self.data[key] = {}
        created = 0 if field in fields else 1
        fields[field] = value
        return created

    async def hdel(self, key, field):
        self.commands.append(("HDEL", key, field))
        fields = self._hash(key)
        if not fields or field not in fields:
            return 0
        del fields[field]
        if not fields:
            del self.data[key]
            self.expiry.pop(key, None)
        return 1

    async def hgetall(self, key):
        self.commands.append(("HGETALL", key))
        return dict(self._hash(key) or {})

    async def hlen(self, key):
        self.commands.append(("HLEN", key))
        return len(self._hash(key) or {})

    async def expire(self, key, seconds):
        self.commands.append(("EXPIRE", key, seconds))
        if key not in self.data:
            return False
        self.expiry[key] = seconds
        return True

    async def ttl(self, key):
        self.commands.append(("TTL", key))
        if key not in self.data:
            return -2
        return self.expiry.get(key, -1)

    async def info(self):
        return {
            "valkey_version": "8.0.1",
            "connected_clients": 1,
            "used_memory_human": "1M",
            "uptime_in_seconds": 3600,
        }

    async def aclose(self):
        self.closed = True


@pytest.fixture
def valkey_config():
    """Create a test Valkey configuration."""
    return ValkeyConfig(url="valkey://localhost:6379/15", socket_timeout=2.0)


@pytest.fixture
def fake_valkey():
    return FakeValkey()


@pytest.fixture
def connected_client(valkey_config, fake_valkey):
    """A ValkeyClient already in CONNECTED state over FakeValkey."""
    client = ValkeyClient(valkey_config)
    client._client = fake_valkey
    client._state = ConnectionState.CONNECTED
    return client


@pytest.fixture
def cache(connected_client):
    return ObjectCache(connected_client)
