"""
Unit tests for clock, duration and random-draw helpers.
"""

import math
import threading
import pytest
from datetime import timedelta

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from xfetch.errors import InvalidParameterError
from xfetch.sampling import (
    early_expiration_probability,
    elapsed,
    open_unit_sample,
    thread_rng,
    to_seconds,
)
from xfetch.testing import FixedRandom


class TestToSeconds:
    """Test cases for duration normalization."""

    def test_numbers(self):
        """Test ints and floats are taken as seconds."""
        assert to_seconds(5) == 5.0
        assert to_seconds(0.25) == 0.25
        assert isinstance(to_seconds(5), float)

    def test_timedelta(self):
        """Test timedelta values are converted."""
        assert to_seconds(timedelta(minutes=2, milliseconds=500)) == 120.5

    @pytest.mark.parametrize("value", ["10", None, True, [1]])
    def test_rejects_non_durations(self, value):
        """Test non-duration values are rejected."""
        with pytest.raises(InvalidParameterError):
            to_seconds(value)

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_rejects_non_finite(self, value):
        """Test infinities and NaN are rejected."""
        with pytest.raises(InvalidParameterError) as exc_info:
            to_seconds(value, "ttl")

        assert "ttl" in exc_info.value.message


class TestOpenUnitSample:
    """Test cases for open-interval draws."""

    def test_zero_is_resampled(self):
        """Test an exact 0.0 is never returned."""
        rng = FixedRandom(0.0, 0.0, 0.3)

        assert open_unit_sample(rng) == 0.3
        assert rng.calls == 3

    def test_value_passed_through(self):
        """Test a non-zero draw is used as is."""
        rng = FixedRandom(0.75)

        assert open_unit_sample(rng) == 0.75
        assert rng.calls == 1

    def test_default_generator_range(self):
        """Test draws from the thread generator stay inside (0, 1)."""
        for _ in range(10_000):
            r = open_unit_sample()
            assert 0.0 < r < 1.0


class TestThreadRng:
    """Test cases for per-thread generators."""

    def test_same_thread_same_generator(self):
        """Test repeated calls on one thread reuse its generator."""
        assert thread_rng() is thread_rng()

    def test_threads_get_distinct_generators(self):
        """Test every thread owns a separate generator."""
        seen = []

        def worker():
            seen.append(thread_rng())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(rng) for rng in seen}) == 4
        assert all(rng is not thread_rng() for rng in seen)

    @pytest.mark.skipif(not hasattr(os, "fork"), reason="requires os.fork")
    def test_forked_children_draw_independent_streams(self):
        """Test forked workers do not replay the parent's generator state."""
        thread_rng().random()
        readers = []

        for _ in range(3):
            read_fd, write_fd = os.pipe()
            pid = os.fork()
            if pid == 0:
                try:
                    os.close(read_fd)
                    draws = ",".join(repr(thread_rng().random()) for _ in range(3))
                    os.write(write_fd, draws.encode())
                finally:
                    os._exit(0)
            os.close(write_fd)
            readers.append((pid, read_fd))

        outputs = []
        for pid, read_fd in readers:
            with os.fdopen(read_fd, "rb") as pipe:
                outputs.append(pipe.read().decode())
            os.waitpid(pid, 0)

        assert all(outputs)
        assert len(set(outputs)) == 3


class TestElapsed:
    """Test cases for elapsed time."""

    def test_forward_clock(self):
        """Test normal elapsed time."""
        assert elapsed(10.0, 12.5) == 2.5

    def test_backward_clock_floored(self):
        """Test a clock that stepped backwards yields zero."""
        assert elapsed(10.0, 9.0) == 0.0


class TestEarlyExpirationProbability:
    """Test cases for the closed-form probability."""

    def test_at_or_past_expiry(self):
        """Test probability is one once expiry is reached."""
        assert early_expiration_probability(0.0, 10.0, 1.0) == 1.0
        assert early_expiration_probability(-5.0, 10.0, 1.0) == 1.0

    def test_zero_scale(self):
        """Test zero delta or beta never expires early."""
        assert early_expiration_probability(1.0, 0.0, 1.0) == 0.0
        assert early_expiration_probability(1.0, 10.0, 0.0) == 0.0

    def test_exponential(self):
        """Test probability follows exp(-remaining / (delta * beta))."""
        assert early_expiration_probability(10.0, 10.0, 1.0) == pytest.approx(math.exp(-1))
        assert early_expiration_probability(10.0, 5.0, 2.0) == pytest.approx(math.exp(-1))
        assert early_expiration_probability(90.0, 10.0, 1.0) == pytest.approx(math.exp(-9))

    def test_monotonic_in_remaining(self):
        """Test probability never decreases as expiry approaches."""
        values = [early_expiration_probability(remaining, 10.0, 1.0) for remaining in range(100, -1, -1)]

        assert values == sorted(values)
        assert values[-1] == 1.0
