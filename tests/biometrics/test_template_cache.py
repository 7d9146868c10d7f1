import json

import numpy as np
import pytest
import redis

from timeclock.biometrics.codec import decode_template, encode_entry
from timeclock.biometrics.model import TemplateEntry
from timeclock.biometrics.template_cache import InMemoryTemplateCache, RedisTemplateCache, build_template_cache


def _entries(template_factory, ids):
    return [TemplateEntry(i, f"Employee {i}", f"{i:011d}", template_factory(i)) for i in ids]


def _ids(entries):
    return sorted(e.employee_id for e in entries)


class FakeRedis:
    """Just enough of redis-py for the template cache (decode_responses=True)."""

    def __init__(self):
        self.values = {}
        self.sets = {}
        self.ttls = {}

    def ping(self):
        return True

    def close(self):
        pass

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(str(m) for m in members)

    def srem(self, key, *members):
        self.sets.get(key, set()).difference_update(str(m) for m in members)

    def scard(self, key):
        return len(self.sets.get(key, set()))

    def set(self, key, value, ex=None):
        self.values[key] = value
        self.ttls[key] = ex

    def get(self, key):
        return self.values.get(key)

    def mget(self, keys):
        return [self.values.get(k) for k in keys]

    def delete(self, *keys):
        for k in keys:
            self.values.pop(k, None)
            self.sets.pop(k, None)

    def exists(self, *keys):
        return sum(1 for k in keys if k in self.values or k in self.sets)

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    """Queues commands; ``watch`` snapshots keys checked again on ``execute``."""

    def __init__(self, client):
        self._client = client
        self._ops = []
        self._watched = {}

    def watch(self, *keys):
        self._watched = {k: self._client.get(k) for k in keys}

    def exists(self, *keys):
        return self._client.exists(*keys)

    def multi(self):
        pass

    def reset(self):
        self._ops = []
        self._watched = {}

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._ops.append((name, args, kwargs))
            return self

        return queue

    def execute(self):
        if any(self._client.get(k) != v for k, v in self._watched.items()):
            raise redis.exceptions.WatchError("watched key changed")
        return [getattr(self._client, name)(*args, **kwargs) for name, args, kwargs in self._ops]


class BrokenRedis(FakeRedis):
    def ping(self):
        raise redis.exceptions.ConnectionError("connection refused")

    def smembers(self, key):
        raise redis.exceptions.ConnectionError("connection refused")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis):
    cache = RedisTemplateCache("redis://cache:6379/0", ttl_seconds=3600, client=fake_redis)
    assert cache.connect()
    return cache


def test_populate_twice_is_idempotent(redis_cache, template_factory):
    entries = _entries(template_factory, [3, 1, 2])

    assert redis_cache.populate(entries)
    first = redis_cache.get_all()
    assert redis_cache.populate(list(reversed(entries)))
    second = redis_cache.get_all()

    assert _ids(first) == _ids(second) == [1, 2, 3]
    assert all(np.allclose(a.template, b.template) for a, b in zip(first, second))


def test_populate_prunes_entries_missing_from_store(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1, 2, 3]))
    redis_cache.populate(_entries(template_factory, [1, 3]))

    assert _ids(redis_cache.get_all()) == [1, 3]
    assert "face:employee:2" not in fake_redis.values


def test_populate_sets_ttl_and_last_sync(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1]))

    assert fake_redis.ttls["face:employee:1"] == 3600
    stats = redis_cache.stats()
    assert stats.available
    assert stats.enrolled_count == 1
    assert stats.last_sync is not None


def test_populate_skips_invalid_templates(redis_cache, template_factory):
    entries = _entries(template_factory, [1]) + [TemplateEntry(2, "Broken", "2", np.zeros(10))]

    redis_cache.populate(entries)

    assert _ids(redis_cache.get_all()) == [1]


def test_expired_member_makes_whole_read_a_miss(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1, 2]))
    del fake_redis.values["face:employee:2"]

    assert redis_cache.get_all() is None


def test_corrupt_value_is_a_miss(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1]))
    fake_redis.values["face:employee:1"] = "{not json"

    assert redis_cache.get_all() is None


def test_upsert_and_remove_single_entry(redis_cache, template_factory):
    redis_cache.populate(_entries(template_factory, [1]))

    assert redis_cache.upsert_one(_entries(template_factory, [5])[0])
    assert _ids(redis_cache.get_all()) == [1, 5]

    assert redis_cache.remove_one(1)
    assert _ids(redis_cache.get_all()) == [5]


def test_cached_value_is_json_with_template_string(redis_cache, fake_redis, template_factory):
    entry = _entries(template_factory, [4])[0]
    redis_cache.populate([])
    assert redis_cache.upsert_one(entry)

    stored = json.loads(fake_redis.values["face:employee:4"])
    assert stored["employee_id"] == 4
    assert np.allclose(decode_template(stored["template"]), entry.template)
    assert fake_redis.values["face:employee:4"] == encode_entry(entry)


def test_invalidate_all_clears_everything(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1, 2]))

    assert redis_cache.invalidate_all()
    assert redis_cache.get_all() is None
    assert redis_cache.stats().enrolled_count == 0
    assert redis_cache.stats().last_sync is None


def test_unreachable_backend_degrades_to_miss(template_factory):
    cache = RedisTemplateCache("redis://cache:6379/0", client=BrokenRedis(), clock=lambda: 0.0)

    assert cache.connect() is False
    assert cache.is_available() is False
    assert cache.get_all() is None
    assert cache.populate(_entries(template_factory, [1])) is False
    assert cache.upsert_one(_entries(template_factory, [1])[0]) is False
    assert cache.stats().available is False


def test_connection_lost_mid_flight_marks_unavailable(fake_redis, template_factory):
    cache = RedisTemplateCache("redis://cache:6379/0", client=fake_redis, clock=lambda: 0.0)
    cache.connect()
    cache.populate(_entries(template_factory, [1]))

    def boom(*_args, **_kwargs):
        raise redis.exceptions.TimeoutError("timed out")

    fake_redis.smembers = boom

    assert cache.get_all() is None
    assert cache.is_available() is False


def test_in_memory_cache_matches_contract(template_factory):
    now = [1000.0]
    cache = InMemoryTemplateCache(ttl_seconds=60, clock=lambda: now[0])

    assert cache.get_all() is None
    cache.connect()
    assert cache.get_all() is None

    cache.populate(_entries(template_factory, [2, 1]))
    assert _ids(cache.get_all()) == [1, 2]
    assert cache.stats().enrolled_count == 2

    now[0] += 61
    assert cache.get_all() is None
    assert cache.stats().last_sync is None


def test_in_memory_remove_and_invalidate(template_factory):
    cache = InMemoryTemplateCache()
    cache.connect()
    cache.populate(_entries(template_factory, [1, 2]))

    cache.remove_one(2)
    assert _ids(cache.get_all()) == [1]

    cache.invalidate_all()
    assert cache.get_all() is None


def test_build_template_cache_picks_backend():
    assert isinstance(build_template_cache(""), InMemoryTemplateCache)
    assert isinstance(build_template_cache("redis://localhost:6379/0"), RedisTemplateCache)


def test_upsert_does_not_create_an_index_on_an_empty_cache(redis_cache, fake_redis, template_factory):
    assert redis_cache.upsert_one(_entries(template_factory, [2])[0]) is False

    assert redis_cache.get_all() is None
    assert "face:all_ids" not in fake_redis.sets


def test_membership_without_last_sync_is_a_miss(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1, 2]))
    fake_redis.delete("face:last_sync")

    assert redis_cache.get_all() is None


def test_upsert_racing_an_invalidation_is_dropped(redis_cache, fake_redis, template_factory):
    redis_cache.populate(_entries(template_factory, [1]))

    class InvalidatedMidUpsert(FakePipeline):
        def multi(self):
            self._client.delete("face:last_sync")

    fake_redis.pipeline = lambda transaction=True: InvalidatedMidUpsert(fake_redis)

    assert redis_cache.upsert_one(_entries(template_factory, [5])[0]) is False
    assert "face:employee:5" not in fake_redis.values


def test_in_memory_upsert_needs_a_populated_index(template_factory):
    cache = InMemoryTemplateCache()
    cache.connect()

    assert cache.upsert_one(_entries(template_factory, [2])[0]) is False
    assert cache.get_all() is None

    cache.populate(_entries(template_factory, [1]))
    assert cache.upsert_one(_entries(template_factory, [2])[0])
    assert _ids(cache.get_all()) == [1, 2]


def test_in_memory_stats_ignore_expired_entries(template_factory):
    now = [1000.0]
    cache = InMemoryTemplateCache(ttl_seconds=60, clock=lambda: now[0])
    cache.connect()
    cache.populate(_entries(template_factory, [1, 2]))

    now[0] = 1030.0
    cache.upsert_one(_entries(template_factory, [1])[0])

    now[0] = 1065.0
    stats = cache.stats()
    assert stats.enrolled_count == 1
    assert stats.last_sync is None
    assert cache.get_all() is None
