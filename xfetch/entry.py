"""
Cache entry with probabilistic early expiration (XFetch).

An entry remembers how long its value took to compute (``delta``) and when
it nominally expires (``expiry``). Every call to :meth:`CacheEntry.is_expired`
makes an independent random decision that volunteers the caller for early
recomputation with a probability that rises from ~0 far from expiry to 1 at
expiry:

    now - delta * beta * ln(r) >= expiry,    r uniform on (0, 1)

Because callers decide independently, a hot key is refreshed by one early
volunteer instead of by every worker at the expiry instant.

See Vattani, Chierichetti, Lowenstein (2015), "Optimal Probabilistic Cache
Stampede Prevention", VLDB 8 (8), pp. 886-897.
"""

import math
import random
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar, TYPE_CHECKING

from .sampling import (
    Clock,
    DEFAULT_CLOCK,
    early_expiration_probability,
    open_unit_sample,
    to_seconds,
    validate_beta,
    validate_delta,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .builder import CacheEntryBuilder

T = TypeVar("T")

DEFAULT_BETA = 1.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value that may volunteer to expire before its TTL.

    Entries are produced by :class:`~xfetch.builder.CacheEntryBuilder` and are
    read-only afterwards, so one instance can be shared between threads
    without locking.

    >>> entry = CacheEntry.builder(lambda: 42).with_ttl(lambda _: 10).build()
    >>> entry.get()
    42
    """

    value: T
    delta: float
    expiry: Optional[float]
    beta: float = DEFAULT_BETA
    clock: Clock = field(default=DEFAULT_CLOCK, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "delta", validate_delta(self.delta))
        object.__setattr__(self, "beta", validate_beta(self.beta))
        if self.expiry is not None:
            object.__setattr__(self, "expiry", to_seconds(self.expiry, "expiry"))

    @staticmethod
    def builder(compute: Callable[[], T]) -> "CacheEntryBuilder[T]":
        """Start building an entry whose value comes from ``compute``."""
        from .builder import CacheEntryBuilder

        return CacheEntryBuilder(compute)

    @property
    def is_eternal(self) -> bool:
        """Entry was explicitly built without a TTL and never expires."""
        return self.expiry is None

    def get(self) -> T:
        """Return the cached value without checking expiration."""
        return self.value

    def is_expired(self, rng: Optional[random.Random] = None) -> bool:
        """Decide whether this caller should treat the entry as expired.

        Past ``expiry`` this is always ``True``. Before it, a fresh draw from
        ``rng`` (the calling thread's generator by default) decides whether
        to expire early. Entries with zero ``delta`` or zero ``beta`` only
        expire at ``expiry`` and never draw.
        """
        if self.expiry is None:
            return False

        now = self.clock()
        if now >= self.expiry:
            return True
        if self.delta <= 0 or self.beta <= 0:
            return False

        r = open_unit_sample(rng)
        threshold = self.delta * self.beta * -math.log(r)
        return now + threshold >= self.expiry

    def ttl_remaining(self) -> Optional[float]:
        """Seconds until nominal expiry, floored at zero; None if eternal."""
        if self.expiry is None:
            return None
        return max(0.0, self.expiry - self.clock())

    def expiration_probability(self) -> float:
        """Probability that :meth:`is_expired` returns True right now."""
        if self.expiry is None:
            return 0.0
        return early_expiration_probability(self.expiry - self.clock(), self.delta, self.beta)
