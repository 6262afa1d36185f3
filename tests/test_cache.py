"""Tests for the Redis list cache, using an in-memory stand-in for the client."""

import redis

from app.services.assets import AssetService
from app.services.cache import EntityCache
from app.schemas.asset import AssetCreate


class FakeRedis:
    """Just the commands EntityCache uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key) or 0) + 1)
        return int(self.data[key])


class BrokenRedis:
    def get(self, *args):
        raise redis.ConnectionError("gone")

    setex = incr = get


def test_disabled_cache_is_a_no_op():
    cache = EntityCache(None)

    cache.set_list("assets", "c1", {}, [{"id": "1"}])

    assert cache.enabled is False
    assert cache.get_list("assets", "c1", {}) is None


def test_hit_until_invalidated():
    client = FakeRedis()
    cache = EntityCache(client, ttl=60)
    params = {"search": None, "order": "asc"}

    cache.set_list("assets", "c1", params, [{"id": "1"}])

    assert cache.get_list("assets", "c1", params) == [{"id": "1"}]
    assert cache.get_list("assets", "c1", {"search": "x"}) is None
    assert cache.get_list("assets", "c2", params) is None
    assert list(client.ttls.values()) == [60]

    cache.invalidate(["assets"], "c1")
    assert cache.get_list("assets", "c1", params) is None


def test_invalidation_is_per_company_and_entity():
    cache = EntityCache(FakeRedis())
    cache.set_list("assets", "c1", {}, [1])
    cache.set_list("assets", "c2", {}, [2])
    cache.set_list("users", "c1", {}, [3])

    cache.invalidate(["assets"], "c1")

    assert cache.get_list("assets", "c2", {}) == [2]
    assert cache.get_list("users", "c1", {}) == [3]


def test_redis_errors_degrade_to_a_miss():
    cache = EntityCache(BrokenRedis())

    cache.set_list("assets", "c1", {}, [1])
    cache.invalidate(["assets"], "c1")

    assert cache.get_list("assets", "c1", {}) is None


def test_service_serves_lists_from_the_cache_and_drops_them_on_write(db, context):
    cache = EntityCache(FakeRedis())
    service = AssetService(db, context, cache=cache)
    service.insert(AssetCreate(name="First", serial_number="C-1"))

    assert [a.name for a in service.get_all()] == ["First"]
    assert any(":v" in key for key in cache.client.data)

    service.insert(AssetCreate(name="Second", serial_number="C-2"))

    assert [a.name for a in service.get_all()] == ["First", "Second"]
