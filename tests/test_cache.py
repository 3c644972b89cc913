"""TTL cache freshness and slot replacement."""

from arbscan.cache import TTLCache
from conftest import FakeClock


def test_empty_slot_is_not_fresh():
    cache = TTLCache(ttl_sec=60, clock=FakeClock())
    assert not cache.is_fresh("k")
    assert cache.get("k") is None
    assert cache.age("k") is None


def test_fresh_within_ttl_then_stale():
    clock = FakeClock()
    cache = TTLCache(ttl_sec=60, clock=clock)
    cache.put("k", {"a": 1})
    assert cache.is_fresh("k")
    clock.advance(59.9)
    assert cache.is_fresh("k")
    clock.advance(0.1)
    assert not cache.is_fresh("k")
    # stale payload is still readable
    assert cache.get("k") == {"a": 1}


def test_put_replaces_payload_and_timestamp():
    clock = FakeClock()
    cache = TTLCache(ttl_sec=60, clock=clock)
    cache.put("k", [1])
    first = cache.slot("k")
    clock.advance(100)
    cache.put("k", [2])
    second = cache.slot("k")
    assert first.payload == [1] and second.payload == [2]
    assert second.fetched_at - first.fetched_at == 100
    assert cache.is_fresh("k")


def test_keys_are_independent():
    cache = TTLCache(ttl_sec=60, clock=FakeClock())
    cache.put("a", [])
    assert cache.is_fresh("a")
    assert not cache.is_fresh("b")
    cache.clear()
    assert not cache.is_fresh("a")
