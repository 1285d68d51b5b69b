"""
Probabilistic early expiration for cache entries (XFetch).

When many workers share a cached value, they all see it expire at the same
moment and all recompute it at once (a cache stampede). XFetch lets each
worker independently volunteer to recompute a little early, with a chance
that grows as expiry approaches and with how expensive the value is to
compute, so one worker refreshes the value before the rest notice.

Structure:
- entry: CacheEntry and the expiration test.
- builder: CacheEntryBuilder, which times the computation and derives the TTL.
- sampling: Clock, duration and open-interval random draw helpers.
- cache: XFetchCache, a minimal keyed store using the read path above.
- config, logging, metrics, errors: settings, structlog, Prometheus, exceptions.

Entries work with any cache container: store them, and call
``entry.is_expired()`` before trusting ``entry.get()``.
"""

from .builder import CacheEntryBuilder
from .cache import XFetchCache
from .entry import CacheEntry, DEFAULT_BETA
from .errors import ConfigurationError, InvalidParameterError, XFetchError

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "CacheEntryBuilder",
    "XFetchCache",
    "DEFAULT_BETA",
    "XFetchError",
    "ConfigurationError",
    "InvalidParameterError",
]
