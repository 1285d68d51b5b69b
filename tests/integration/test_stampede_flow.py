"""
Integration tests for stampede smoothing across many workers.
"""

import math
import random
import threading
import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from xfetch.cache import XFetchCache
from xfetch.testing import FakeClock, build_entry


WORKERS = 200


def volunteers_per_tick(entry, clock, rng, start_remaining=100):
    """Count, second by second, how many workers see the shared entry as expired."""
    counts = []
    for remaining in range(start_remaining, -1, -1):
        clock.set(entry.expiry - remaining)
        counts.append((remaining, sum(1 for _ in range(WORKERS) if entry.is_expired(rng))))
    return counts


class TestStampedeFlow:
    """Workers sharing one entry without coordination."""

    @pytest.fixture
    def clock(self):
        """Create a fake clock."""
        return FakeClock(start=0.0)

    @pytest.fixture
    def rng(self):
        """Seeded generator for reproducible runs."""
        return random.Random(886)

    def test_exact_expiry_stampedes(self, clock, rng):
        """Test beta=0 makes every worker recompute at the same instant."""
        entry = build_entry("v", clock=clock, delta=10.0, ttl=100.0, beta=0.0)

        counts = volunteers_per_tick(entry, clock, rng)

        assert all(count == 0 for remaining, count in counts if remaining > 0)
        assert counts[-1] == (0, WORKERS)

    def test_xfetch_refreshes_before_expiry(self, clock, rng):
        """Test the first volunteers appear before expiry and are few."""
        entry = build_entry("v", clock=clock, delta=10.0, ttl=100.0, beta=1.0)

        counts = volunteers_per_tick(entry, clock, rng)
        first_remaining, first_count = next((r, c) for r, c in counts if c > 0)

        assert first_remaining > 0
        assert first_count < WORKERS // 4

    def test_concurrent_callers_share_entry(self, clock):
        """Test threads testing one shared entry reproduce the closed-form ratio."""
        entry = build_entry("v", clock=clock, delta=10.0, ttl=100.0)
        clock.advance(90.0)
        results = []
        lock = threading.Lock()

        def worker():
            expired = sum(1 for _ in range(2500) if entry.is_expired())
            with lock:
                results.append(expired)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        ratio = sum(results) / (8 * 2500)
        assert ratio == pytest.approx(math.exp(-1.0), abs=0.05)
        assert entry.get() == "v"


class TestCacheRefreshFlow:
    """End-to-end refresh behaviour of XFetchCache."""

    def test_polled_key_refreshed_once(self):
        """Test a polled key is recomputed exactly once per expiry cycle."""
        clock = FakeClock(start=0.0)
        cache = XFetchCache(100, beta=1.0, clock=clock, name="prices")
        version = {"n": 0}

        def slow_recompute():
            clock.advance(10.0)
            version["n"] += 1
            return version["n"]

        assert cache.fetch("BRN", slow_recompute) == 1
        first_expiry = cache.get_entry("BRN").expiry
        assert cache.get_entry("BRN").delta == 10.0

        while version["n"] == 1:
            cache.fetch("BRN", slow_recompute)
            clock.advance(1.0)

        stats = cache.stats
        assert version["n"] == 2
        assert clock.now <= first_expiry + 11.0
        assert stats["misses"] == 1
        assert stats["early"] + stats["expired"] == 1
        assert stats["hits"] > 0
