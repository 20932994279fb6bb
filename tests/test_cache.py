"""
Tests for the TTL cache.
"""

import threading

from scholarship_catalog.cache import TTLCache


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestTTLCache:
    """Tests for expiry and basic mapping behavior."""

    def test_get_missing(self):
        """Test missing keys return None."""
        cache = TTLCache(60, clock=FakeClock())

        assert cache.get("missing") is None

    def test_set_and_get(self):
        """Test values are returned while live."""
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)

        expires_at = cache.set("key", "value")

        assert expires_at == 1060.0
        assert cache.get("key") == "value"

    def test_expires_after_ttl(self):
        """Test entries are treated as absent once the TTL elapses."""
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("key", "value")

        clock.advance(59)
        assert cache.get("key") == "value"

        clock.advance(1)
        assert cache.get("key") is None

    def test_overwrite_resets_expiry(self):
        """Test setting a key again restarts its TTL."""
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("key", "old")

        clock.advance(50)
        cache.set("key", "new")
        clock.advance(50)

        assert cache.get("key") == "new"

    def test_concurrent_writers(self):
        """Test concurrent inserts from several threads are all kept."""
        cache = TTLCache(60, clock=FakeClock())

        def writer(offset):
            for i in range(100):
                cache.set(offset * 100 + i, i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(cache.get(offset * 100 + i) == i for offset in range(8) for i in range(100))
