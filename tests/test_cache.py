"""Tests for the bounded LRU cache."""

from matrisync.utils import LRUCache


def test_evicts_least_recently_used_entry():
    cache = LRUCache(capacity=2)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.get("a") == 1

    cache.set("c", 3)

    assert "b" not in cache
    assert list(cache.keys()) == ["a", "c"]
    assert len(cache) == 2


def test_overwrite_refreshes_position():
    cache = LRUCache(capacity=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("a") == 10
    assert cache.get("b") is None


def test_default_capacity_bounds_growth():
    cache = LRUCache()
    for index in range(600):
        cache.set(index, index)

    assert len(cache) == 500
    assert 0 not in cache
    assert 599 in cache


def test_pop_and_clear():
    cache = LRUCache(capacity=3)
    cache.set("a", 1)

    assert cache.pop("a") == 1
    assert cache.pop("a") is None
    cache.set("b", 2)
    cache.clear()
    assert len(cache) == 0
