"""
Tests for the in-process cache primitives
"""
from gamehub.core.cache import RateLimiter, SingleSlotCache, TTLCache


class TestSingleSlotCache:
    def test_empty_slot_misses(self, clock):
        cache = SingleSlotCache(ttl=60, clock=clock)
        assert cache.get() is None

    def test_fresh_until_ttl_elapses(self, clock):
        cache = SingleSlotCache(ttl=60, clock=clock)
        cache.put(["a"])

        clock.advance(59)
        assert cache.get() == ["a"]

        clock.advance(1)
        assert cache.get() is None

    def test_put_replaces_payload_and_timestamp(self, clock):
        cache = SingleSlotCache(ttl=60, clock=clock)
        cache.put("old")
        clock.advance(50)
        cache.put("new")
        clock.advance(50)
        assert cache.get() == "new"

    def test_invalidate(self, clock):
        cache = SingleSlotCache(ttl=60, clock=clock)
        cache.put("value")
        cache.invalidate()
        assert cache.get() is None


class TestTTLCache:
    def test_keys_expire_independently(self, clock):
        cache = TTLCache(ttl=100, clock=clock)
        cache.put(10, "ten")
        clock.advance(60)
        cache.put(20, "twenty")
        clock.advance(50)

        assert cache.get(10) is None
        assert cache.get(20) == "twenty"

    def test_invalidate_reports_presence(self, clock):
        cache = TTLCache(ttl=100, clock=clock)
        cache.put(10, "ten")
        assert cache.invalidate(10) is True
        assert cache.invalidate(10) is False

    def test_clear_returns_removed_count(self, clock):
        cache = TTLCache(ttl=100, clock=clock)
        cache.put(1, "a")
        cache.put(2, "b")
        assert len(cache) == 2
        assert cache.clear() == 2
        assert len(cache) == 0


class TestRateLimiter:
    def test_blocks_after_limit_within_window(self, clock):
        limiter = RateLimiter(clock=clock)
        assert limiter.check("ip:/path", limit=2, window_seconds=60)
        assert limiter.check("ip:/path", limit=2, window_seconds=60)
        assert not limiter.check("ip:/path", limit=2, window_seconds=60)

    def test_window_resets(self, clock):
        limiter = RateLimiter(clock=clock)
        limiter.check("ip:/path", limit=1, window_seconds=60)
        assert not limiter.check("ip:/path", limit=1, window_seconds=60)
        clock.advance(60)
        assert limiter.check("ip:/path", limit=1, window_seconds=60)

    def test_keys_are_counted_separately(self, clock):
        limiter = RateLimiter(clock=clock)
        assert limiter.check("a", limit=1, window_seconds=60)
        assert limiter.check("b", limit=1, window_seconds=60)
