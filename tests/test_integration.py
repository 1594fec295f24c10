"""
Integration tests against a running Valkey (or Redis) server.

The server is taken from VALKEY_URL / VALKEY_PASSWORD (or a .env file).
Every test is skipped when no server answers.
"""

import asyncio

import pytest

from valkey_objcache import ObjectCache, TypeMismatchError, ValkeyConnectionError

pytestmark = pytest.mark.integration

VALUE = {"hello": "world"}


@pytest.fixture
async def live_cache():
    try:
        cache = await ObjectCache.create()
    except ValkeyConnectionError as e:
        pytest.skip(f"Valkey server not available: {e}")
    yield cache
    if cache.is_connected():
        await cache.delete("my:key")
        await cache.delete("my:hash:key")
        await cache.quit()


class TestGetAndSet:

    @pytest.mark.asyncio
    async def test_connection_is_valid(self, live_cache):
        assert live_cache.is_connected()

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, live_cache):
        assert await live_cache.get("BAD-KEY") is None

    @pytest.mark.asyncio
    async def test_set_get_and_delete_an_object(self, live_cache):
        assert await live_cache.set("my:key", VALUE) is True
        assert await live_cache.get("my:key") == VALUE
        assert await live_cache.delete("my:key") == 1
        assert await live_cache.delete("my:key") == 0


class TestHashOperations:
    key = "my:hash:key"
    field = "my:field"

    @pytest.mark.asyncio
    async def test_hset_hget_and_del(self, live_cache):
        await live_cache.hset(self.key, self.field, VALUE)
        assert await live_cache.hget(self.key, self.field) == VALUE
        assert await live_cache.hdel(self.key, self.field) == 1
        # deleting the last field deletes the hash
        assert await live_cache.delete(self.key) == 0

    @pytest.mark.asyncio
    async def test_plain_get_of_a_hash_raises(self, live_cache):
        await live_cache.hset(self.key, self.field, VALUE)
        with pytest.raises(TypeMismatchError) as exc_info:
            await live_cache.get(self.key)
        assert str(exc_info.value) == "WRONGTYPE Operation against a key holding the wrong kind of value"

    @pytest.mark.asyncio
    async def test_del_removes_entire_hash(self, live_cache):
        await live_cache.hset(self.key, self.field, VALUE)
        await live_cache.hset(self.key, "field2", VALUE)
        assert await live_cache.hget(self.key, self.field) == VALUE
        await live_cache.delete(self.key)
        assert await live_cache.hget(self.key, self.field) is None

    @pytest.mark.asyncio
    async def test_hgetall_and_hlen(self, live_cache):
        assert await live_cache.hlen(self.key) == 0
        await live_cache.hset(self.key, self.field, VALUE)
        assert await live_cache.hlen(self.key) == 1
        await live_cache.hset(self.key, "field2", VALUE)
        assert await live_cache.hlen(self.key) == 2
        assert await live_cache.hgetall(self.key) == {self.field: VALUE, "field2": VALUE}


class TestExpire:

    @pytest.mark.asyncio
    async def test_ttl_sentinels(self, live_cache):
        assert await live_cache.ttl("my:key") == -2
        await live_cache.set("my:key", VALUE)
        assert await live_cache.ttl("my:key") == -1

    @pytest.mark.asyncio
    async def test_set_with_expiry(self, live_cache):
        await live_cache.set("my:key", VALUE, 10)
        assert await live_cache.ttl("my:key") == 10
        await asyncio.sleep(5)
        assert await live_cache.ttl("my:key") in (4, 5)
        await live_cache.expire("my:key", 10)
        assert await live_cache.ttl("my:key") == 10
