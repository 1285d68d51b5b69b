"""
Clock, duration and random-draw helpers for the expiration test.

Durations are plain float seconds throughout the package. Callers may hand
in ``datetime.timedelta`` objects; ``to_seconds`` normalizes them.
"""

import math
import os
import random
import threading
import time
from datetime import timedelta
from numbers import Real
from typing import Callable, Optional, Union

from .errors import InvalidParameterError

Clock = Callable[[], float]
Duration = Union[int, float, timedelta]

DEFAULT_CLOCK: Clock = time.monotonic

_local = threading.local()


def _reset_after_fork() -> None:
    global _local
    _local = threading.local()


# Forked children start without a generator and seed their own.
if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_reset_after_fork)


def to_seconds(value: Duration, name: str = "duration") -> float:
    """Normalize a duration to float seconds."""
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, Real) and not isinstance(value, bool):
        seconds = float(value)
    else:
        raise InvalidParameterError(
            f"{name} must be a number of seconds or a timedelta",
            {name: repr(value)}
        )

    if not math.isfinite(seconds):
        raise InvalidParameterError(f"{name} must be finite", {name: seconds})
    return seconds


def validate_beta(beta) -> float:
    """Return ``beta`` as a float, rejecting negative or non-finite values."""
    if not isinstance(beta, Real) or isinstance(beta, bool):
        raise InvalidParameterError("beta must be a number", {"beta": repr(beta)})
    beta = float(beta)
    if not math.isfinite(beta) or beta < 0:
        raise InvalidParameterError("beta must be a finite number >= 0", {"beta": beta})
    return beta


def validate_delta(delta) -> float:
    """Return ``delta`` as float seconds, rejecting negative or non-finite values."""
    delta = to_seconds(delta, "delta")
    if delta < 0:
        raise InvalidParameterError("delta must be >= 0", {"delta": delta})
    return delta


def thread_rng() -> random.Random:
    """Return the calling thread's private generator.

    Each thread gets its own ``random.Random`` seeded from OS entropy, so
    concurrent expiration tests neither share state nor correlate draws.
    """
    rng = getattr(_local, "rng", None)
    if rng is None:
        rng = random.Random()
        _local.rng = rng
    return rng


def open_unit_sample(rng: Optional[random.Random] = None) -> float:
    """Draw uniformly from the open interval (0, 1).

    ``random()`` covers [0, 1): it never yields 1.0, and an exact 0.0 is
    redrawn, so ``-log(r)`` is always finite and strictly positive.
    """
    if rng is None:
        rng = thread_rng()
    r = rng.random()
    while r <= 0.0:
        r = rng.random()
    return r


def elapsed(start: float, end: float) -> float:
    """Seconds between two clock readings, floored at zero."""
    return max(0.0, end - start)


def early_expiration_probability(remaining: float, delta: float, beta: float) -> float:
    """Closed-form chance that one expiration test volunteers.

    ``remaining`` is ``expiry - now``. The draw ``delta * beta * -ln(r)`` is
    exponentially distributed with mean ``delta * beta``, hence
    ``P = exp(-remaining / (delta * beta))`` before expiry.
    """
    if remaining <= 0:
        return 1.0
    scale = delta * beta
    if scale <= 0:
        return 0.0
    return math.exp(-remaining / scale)
