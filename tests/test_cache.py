import os

import pytest

from oss_compass.cache import DEFAULT_TTL, CacheManager


class Clock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def cache(tmp_path, clock):
    return CacheManager(base_dir=str(tmp_path / "cache"), clock=clock)


def test_set_then_get(cache):
    assert cache.set("search", ["react", 30], {"total": 3})
    assert cache.get("search", ["react", 30]) == {"total": 3}
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["sets"] == 1
    assert stats["entries"] == 1


def test_miss_is_counted(cache):
    assert cache.get("search", ["nothing"]) is None
    assert cache.stats()["misses"] == 1


def test_entries_expire_per_kind(cache, clock):
    cache.set("search", ["react"], [1])
    cache.set("skills", ["react"], [2])
    clock.now += DEFAULT_TTL["search"] + 1

    assert cache.get("search", ["react"]) is None
    assert cache.get("skills", ["react"]) == [2]


def test_custom_ttl(tmp_path, clock):
    cache = CacheManager(base_dir=str(tmp_path), ttl={"search": 10}, clock=clock)
    assert cache.ttl_for("search") == 10
    assert cache.ttl_for("unknown-kind") == DEFAULT_TTL["default"]


def test_kinds_do_not_collide(cache):
    cache.set("search", ["python"], "a")
    cache.set("trending", ["python"], "b")
    assert cache.get("search", ["python"]) == "a"
    assert cache.get("trending", ["python"]) == "b"


def test_unreadable_entry_is_a_miss(cache):
    cache.set("search", ["react"], [1])
    path = cache._path("search", ["react"])
    with open(path, "w", encoding="utf-8") as f:
        f.write("{not json")
    assert cache.get("search", ["react"]) is None
    assert cache.stats()["misses"] == 1


def test_disabled_cache_stores_nothing(tmp_path):
    cache = CacheManager(base_dir=str(tmp_path / "cache"), enabled=False)
    assert cache.set("search", ["react"], [1]) is False
    assert cache.get("search", ["react"]) is None
    assert not os.path.exists(tmp_path / "cache")


def test_invalidate(cache):
    cache.set("repository", ["octo", "widgets"], {"id": 1})
    assert cache.invalidate("repository", ["octo", "widgets"])
    assert cache.get("repository", ["octo", "widgets"]) is None
    assert not cache.invalidate("repository", ["octo", "widgets"])


def test_clear(cache):
    cache.set("search", ["a"], 1)
    cache.set("search", ["b"], 2)
    cache.set("trending", ["a"], 3)

    assert cache.clear("search") == 2
    assert cache.get("trending", ["a"]) == 3
    assert cache.clear() == 1
    assert cache.stats()["entries"] == 0
    assert cache.clear() == 0


def test_hit_rate(cache):
    cache.set("search", ["a"], 1)
    cache.get("search", ["a"])
    cache.get("search", ["b"])
    assert cache.stats()["hit_rate"] == 0.5


def test_from_config(tmp_path):
    cache = CacheManager.from_config({
        "cache": {"enabled": False, "dir": str(tmp_path), "ttl": {"skills": 5}}
    })
    assert cache.enabled is False
    assert cache.base_dir == str(tmp_path)
    assert cache.ttl_for("skills") == 5
    assert cache.ttl_for("search") == DEFAULT_TTL["search"]
