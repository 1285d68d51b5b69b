"""
Keyed in-process cache that refreshes entries with XFetch.
"""

import threading
from typing import Any, Callable, Dict, Hashable, Optional, Union

from .builder import CacheEntryBuilder, validate_beta
from .config import get_settings
from .entry import CacheEntry
from .logging import get_logger
from .metrics import XFetchMetrics, get_default_metrics
from .sampling import Clock, DEFAULT_CLOCK, Duration, to_seconds

TTL = Union[Duration, Callable[[Any], Duration]]

# stats key -> metrics outcome label
_OUTCOME_LABELS = {"hits": "hit", "misses": "miss", "early": "early", "expired": "expired"}


class XFetchCache:
    """Map of keys to :class:`~xfetch.entry.CacheEntry` objects.

    ``fetch`` follows the XFetch read path: serve the stored value unless the
    entry is missing or volunteers to expire, in which case recompute it,
    time the recomputation and store a fresh entry. The lock only guards the
    map itself; recomputations run unlocked and concurrent volunteers are
    not coordinated. There is no size bound or eviction.
    """

    def __init__(
        self,
        ttl: TTL,
        beta: Optional[float] = None,
        *,
        clock: Optional[Clock] = None,
        metrics: Optional[XFetchMetrics] = None,
        name: str = "default",
    ):
        if callable(ttl):
            self._ttl_fn = ttl
        else:
            seconds = to_seconds(ttl, "ttl")
            self._ttl_fn = lambda _value: seconds
        settings = get_settings() if beta is None or metrics is None else None
        self.beta = settings.default_beta if beta is None else validate_beta(beta)
        self.clock = clock or DEFAULT_CLOCK
        if metrics is None and settings.metrics_enabled:
            metrics = get_default_metrics()
        self.metrics = metrics
        self.name = name
        self.logger = get_logger("xfetch.cache")

        self._store: Dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "early": 0, "expired": 0, "errors": 0}

    def _record(self, outcome: str):
        with self._lock:
            self._stats[outcome] += 1
        if self.metrics and outcome in _OUTCOME_LABELS:
            self.metrics.record_lookup(self.name, _OUTCOME_LABELS[outcome])

    def _classify(self, entry: Optional[CacheEntry]) -> str:
        if entry is None:
            return "misses"
        if entry.expiry is not None and entry.clock() >= entry.expiry:
            return "expired"
        if entry.is_expired():
            return "early"
        return "hits"

    def build_entry(self, recompute: Callable[[], Any]) -> CacheEntry:
        """Compute a value and wrap it in an entry with this cache's settings."""
        return (
            CacheEntryBuilder(recompute, clock=self.clock)
            .with_ttl(self._ttl_fn)
            .with_beta(self.beta)
            .build()
        )

    def fetch(self, key: Hashable, recompute: Callable[[], Any]) -> Any:
        """Return the value for ``key``, recomputing it when XFetch says so.

        If ``recompute`` raises, the exception propagates and the previous
        entry (if any) stays in place.
        """
        entry = self.get_entry(key)
        outcome = self._classify(entry)
        self._record(outcome)
        if outcome == "hits":
            return entry.get()

        self.logger.debug("Recomputing cache entry", cache=self.name, key=str(key), reason=outcome)
        try:
            fresh = self.build_entry(recompute)
        except Exception as exc:
            self._record("errors")
            if self.metrics:
                self.metrics.record_recompute_error(self.name)
            self.logger.warning("Cache recompute failed", cache=self.name, key=str(key), error=str(exc))
            raise

        if self.metrics:
            self.metrics.record_recompute(self.name, fresh.delta)
        self.put(key, fresh)
        return fresh.get()

    def get_entry(self, key: Hashable) -> Optional[CacheEntry]:
        """Return the stored entry without testing it."""
        with self._lock:
            return self._store.get(key)

    def put(self, key: Hashable, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous entry."""
        with self._lock:
            self._store[key] = entry

    def invalidate(self, key: Hashable) -> bool:
        """Remove ``key``. Returns True if it was present."""
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> int:
        """Remove all entries and return how many there were."""
        with self._lock:
            count = len(self._store)
            self._store.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._store

    @property
    def stats(self) -> Dict[str, Any]:
        """Lookup counters: hits, misses, early and expired recomputations, errors."""
        with self._lock:
            stats = dict(self._stats)
            stats["size"] = len(self._store)
        lookups = stats["hits"] + stats["misses"] + stats["early"] + stats["expired"]
        stats["hit_rate"] = stats["hits"] / lookups if lookups else 0.0
        return stats
