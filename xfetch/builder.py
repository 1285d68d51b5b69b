"""
Staged construction of cache entries.
"""

from typing import Callable, Generic, Optional, TypeVar

from .entry import CacheEntry, DEFAULT_BETA
from .errors import ConfigurationError, InvalidParameterError
from .logging import get_logger
from .sampling import Clock, DEFAULT_CLOCK, Duration, elapsed, to_seconds, validate_beta, validate_delta

T = TypeVar("T")

logger = get_logger("xfetch.builder")


def _require_callable(value, name: str) -> None:
    if not callable(value):
        raise InvalidParameterError(f"{name} must be callable", {name: repr(value)})


class CacheEntryBuilder(Generic[T]):
    """One-shot builder for :class:`~xfetch.entry.CacheEntry`.

    Nothing runs until :meth:`build`, which times ``compute``, derives the TTL
    from the computed value and assembles the entry. A TTL (or an explicit
    :meth:`eternal`) is required; there is no default.

    >>> entry = (
    ...     CacheEntryBuilder(lambda: {"ttl": 30})
    ...     .with_ttl(lambda value: value["ttl"])
    ...     .with_beta(1.5)
    ...     .build()
    ... )
    """

    def __init__(self, compute: Callable[[], T], clock: Optional[Clock] = None):
        _require_callable(compute, "compute")
        self._compute = compute
        self._ttl_fn: Optional[Callable[[T], Duration]] = None
        self._delta_fn: Optional[Callable[[T], Duration]] = None
        self._eternal = False
        self._beta = DEFAULT_BETA
        self._clock = clock or DEFAULT_CLOCK
        self._consumed = False

    def with_ttl(self, ttl_fn: Callable[[T], Duration]) -> "CacheEntryBuilder[T]":
        """Derive the time-to-live from the computed value.

        ``ttl_fn`` receives the value and returns seconds or a ``timedelta``.
        Replaces an earlier ``with_ttl`` or ``eternal`` call.
        """
        _require_callable(ttl_fn, "ttl_fn")
        self._ttl_fn = ttl_fn
        self._eternal = False
        return self

    def with_beta(self, beta: float) -> "CacheEntryBuilder[T]":
        """Set the early expiration aggressiveness.

        ``beta > 1`` favours earlier recomputation, ``beta < 1`` later, and
        ``beta == 0`` disables early expiration. Negative values are rejected.
        """
        self._beta = validate_beta(beta)
        return self

    def with_delta(self, delta_fn: Callable[[T], Duration]) -> "CacheEntryBuilder[T]":
        """Override the measured recomputation time.

        Useful when ``compute`` only returns a handle to work done elsewhere
        and the timer would underestimate the real cost.
        """
        _require_callable(delta_fn, "delta_fn")
        self._delta_fn = delta_fn
        return self

    def eternal(self) -> "CacheEntryBuilder[T]":
        """Build an entry that never expires. Replaces any TTL."""
        self._ttl_fn = None
        self._eternal = True
        return self

    def with_clock(self, clock: Clock) -> "CacheEntryBuilder[T]":
        """Use ``clock`` (monotonic seconds) instead of ``time.monotonic``."""
        _require_callable(clock, "clock")
        self._clock = clock
        return self

    def build(self) -> CacheEntry[T]:
        """Run the computation and assemble the entry.

        Raises:
            ConfigurationError: no TTL registered, or the builder was already used.
            InvalidParameterError: the TTL or delta override is negative or not a duration.

        Exceptions from the user callables propagate unchanged.
        """
        if self._consumed:
            raise ConfigurationError("builder has already been consumed by build()")
        if self._ttl_fn is None and not self._eternal:
            raise ConfigurationError(
                "ttl is required: call with_ttl() or eternal() before build()",
                {"missing": "ttl"}
            )
        self._consumed = True

        start = self._clock()
        value = self._compute()
        finished = self._clock()
        delta = elapsed(start, finished)

        expiry = None
        if self._ttl_fn is not None:
            ttl = to_seconds(self._ttl_fn(value), "ttl")
            if ttl < 0:
                raise InvalidParameterError("ttl must be >= 0", {"ttl": ttl})
            expiry = finished + ttl

        if self._delta_fn is not None:
            delta = validate_delta(self._delta_fn(value))

        logger.debug(
            "Built cache entry",
            delta=delta,
            ttl=None if expiry is None else expiry - finished,
            beta=self._beta
        )

        return CacheEntry(
            value=value,
            delta=delta,
            expiry=expiry,
            beta=self._beta,
            clock=self._clock
        )
