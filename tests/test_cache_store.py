"""
tests/test_cache_store.py -- Unit tests for cache/store.py TTLCache.

A FakeClock replaces time.monotonic so expiry is tested without sleeping.
"""

from __future__ import annotations

import threading

from cache.store import TTLCache


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestTTLCacheBasics:
    def test_missing_key_not_found(self) -> None:
        cache = TTLCache(ttl=60)
        assert cache.get("never-set") == (None, False)

    def test_set_then_get(self) -> None:
        cache = TTLCache(ttl=60)
        cache.set("doc:1", {"name": "a"})
        value, found = cache.get("doc:1")
        assert found is True
        assert value == {"name": "a"}

    def test_overwrite_returns_new_value(self) -> None:
        cache = TTLCache(ttl=60)
        cache.set("k", "old")
        cache.set("k", "new")
        assert cache.get("k") == ("new", True)

    def test_none_value_is_a_hit(self) -> None:
        """A cached None is distinguishable from a miss through the found flag."""
        cache = TTLCache(ttl=60)
        cache.set("k", None)
        assert cache.get("k") == (None, True)


class TestTTLCacheExpiry:
    def test_visible_before_expiry(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(9.5)
        assert cache.get("k") == (1, True)

    def test_visible_at_exact_expiry(self) -> None:
        """Entries expire strictly after expires_at, not at it."""
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(10)
        assert cache.get("k") == (1, True)

    def test_not_found_after_expiry(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(10.001)
        assert cache.get("k") == (None, False)

    def test_expired_entry_is_removed_on_read(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(11)
        cache.get("k")
        assert len(cache) == 0, "Expired entry should be dropped lazily by get()"

    def test_zero_ttl_never_expires(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=0, clock=clock)
        cache.set("k", "forever")
        clock.advance(10 * 365 * 24 * 3600)
        assert cache.get("k") == ("forever", True)

    def test_overwrite_resets_expiry(self) -> None:
        clock = FakeClock()
        cache = TTLCache(ttl=10, clock=clock)
        cache.set("k", 1)
        clock.advance(8)
        cache.set("k", 2)
        clock.advance(8)
        assert cache.get("k") == (2, True)


class TestTTLCacheInvalidation:
    def test_invalidate_single_key(self) -> None:
        cache = TTLCache(ttl=60)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get("a") == (None, False)
        assert cache.get("b") == (2, True)

    def test_invalidate_missing_key_is_noop(self) -> None:
        cache = TTLCache(ttl=60)
        cache.invalidate("nope")
        assert len(cache) == 0

    def test_invalidate_all(self) -> None:
        cache = TTLCache(ttl=60)
        for i in range(5):
            cache.set(f"list:owner:{i}", [i])
        cache.invalidate_all()
        assert len(cache) == 0
        for i in range(5):
            assert cache.get(f"list:owner:{i}") == (None, False)

    def test_concurrent_set_get_invalidate_all(self) -> None:
        """Readers only ever see values written for the key they ask about."""
        cache = TTLCache(ttl=60)
        errors: list[Exception] = []
        keys = [f"doc:{i}" for i in range(20)]

        def writer(worker: int) -> None:
            try:
                for n in range(500):
                    key = keys[n % len(keys)]
                    cache.set(key, (key, worker, n))
                    if n % 50 == 0:
                        cache.invalidate_all()
            except Exception as exc:  # collected and asserted below
                errors.append(exc)

        def reader() -> None:
            try:
                for n in range(2000):
                    key = keys[n % len(keys)]
                    value, found = cache.get(key)
                    if found:
                        assert value[0] == key, f"{key} returned a value written for {value[0]}"
                    else:
                        assert value is None
                    never_set, found = cache.get(f"unknown:{n}")
                    assert (never_set, found) == (None, False)
            except Exception as exc:  # collected and asserted below
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(w,)) for w in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) <= len(keys)

    def test_set_after_invalidate_all(self) -> None:
        cache = TTLCache(ttl=60)
        cache.set("k", 1)
        cache.invalidate_all()
        cache.set("k", 2)
        assert cache.get("k") == (2, True)
