"""
Test helpers for code that uses xfetch entries.
"""

import random
from typing import Optional

from .entry import CacheEntry


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now

    def set(self, now: float) -> None:
        self.now = now


class SteppingClock(FakeClock):
    """Clock that moves by ``step`` seconds every time it is read.

    Lets a builder "measure" a computation of known cost. A negative step
    simulates a clock that jumps backwards.
    """

    def __init__(self, start: float = 1000.0, step: float = 0.0):
        super().__init__(start)
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


class FixedRandom(random.Random):
    """Generator whose ``random()`` returns a fixed sequence, then repeats the last value."""

    def __init__(self, *values: float):
        super().__init__(0)
        self._values = list(values) or [0.5]
        self._index = 0

    def random(self) -> float:
        value = self._values[min(self._index, len(self._values) - 1)]
        self._index += 1
        return value

    @property
    def calls(self) -> int:
        return self._index


def expired_ratio(entry: CacheEntry, trials: int = 10_000, rng: Optional[random.Random] = None) -> float:
    """Fraction of ``trials`` expiration tests that report expired."""
    expired = sum(1 for _ in range(trials) if entry.is_expired(rng))
    return expired / trials


def build_entry(value=None, *, clock: FakeClock, delta: float, ttl: float, beta: float = 1.0) -> CacheEntry:
    """Build an entry with an exact delta and TTL on ``clock``."""
    return (
        CacheEntry.builder(lambda: value)
        .with_clock(clock)
        .with_delta(lambda _: delta)
        .with_ttl(lambda _: ttl)
        .with_beta(beta)
        .build()
    )
