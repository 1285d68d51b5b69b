"""
Prometheus metrics for xfetch caches.
"""

from functools import lru_cache
from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY


LOOKUP_OUTCOMES = ("hit", "miss", "early", "expired")


class XFetchMetrics:
    """Metrics collector shared by one or more caches.

    Pass ``prometheus_client.REGISTRY`` (or a custom registry) to export the
    metrics; with ``registry=None`` they are collected but not registered.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache metrics."""
        self._metrics["xfetch_cache_lookups_total"] = Counter(
            "xfetch_cache_lookups_total",
            "Total cache lookups by outcome",
            ["cache", "outcome"],
            registry=self.registry
        )

        self._metrics["xfetch_recompute_duration_seconds"] = Histogram(
            "xfetch_recompute_duration_seconds",
            "Time spent recomputing cached values",
            ["cache"],
            registry=self.registry
        )

        self._metrics["xfetch_recompute_errors_total"] = Counter(
            "xfetch_recompute_errors_total",
            "Total failed recomputations",
            ["cache"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_lookup(self, cache: str, outcome: str):
        """Record the outcome of a cache lookup."""
        if outcome not in LOOKUP_OUTCOMES:
            raise ValueError(f"Unknown lookup outcome: {outcome}")
        self._metrics["xfetch_cache_lookups_total"].labels(cache=cache, outcome=outcome).inc()

    def record_recompute(self, cache: str, duration: float):
        """Record a successful recomputation."""
        self._metrics["xfetch_recompute_duration_seconds"].labels(cache=cache).observe(duration)

    def record_recompute_error(self, cache: str):
        """Record a failed recomputation."""
        self._metrics["xfetch_recompute_errors_total"].labels(cache=cache).inc()


@lru_cache(maxsize=1)
def get_default_metrics() -> XFetchMetrics:
    """Process-wide collector registered with the default Prometheus registry."""
    return XFetchMetrics(REGISTRY)
