#!/usr/bin/env python3
"""
Print how often an entry reports expired as it approaches its TTL.

Builds one entry whose computation takes ``--delta`` seconds, then walks the
clock towards expiry and, at each step, runs ``--samples`` expiration tests
and prints the observed ratio next to the closed-form probability
exp(-(expiry - now) / (delta * beta)).

By default time is simulated; ``--realtime`` sleeps for real.

Usage::

    python scripts/early_expire_probability.py --delta 1 --ttl 60 --step 0.5
"""

import argparse
import json
import sys
import os
import time

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from xfetch.builder import CacheEntryBuilder  # noqa: E402
from xfetch.config import get_settings  # noqa: E402
from xfetch.logging import configure_logging, get_logger  # noqa: E402
from xfetch.testing import FakeClock, expired_ratio  # noqa: E402


def run(*, delta: float, ttl: float, beta: float, step: float, samples: int, realtime: bool) -> list:
    """Walk from construction to expiry and collect observed vs. expected ratios."""
    logger = get_logger("xfetch.scripts.probability")
    if step <= 0 or samples <= 0:
        raise ValueError("step and samples must be > 0")

    if realtime:
        clock = time.monotonic
        wait = time.sleep
    else:
        clock = FakeClock(start=0.0)
        wait = clock.advance

    def compute():
        wait(delta)
        return 42

    entry = (
        CacheEntryBuilder(compute, clock=clock)
        .with_ttl(lambda _: ttl)
        .with_beta(beta)
        .build()
    )

    logger.info("Built entry", delta=entry.delta, ttl=ttl, beta=beta, realtime=realtime)

    start = clock()
    rows = []
    while True:
        elapsed = clock() - start
        rows.append({
            "elapsed": round(elapsed, 3),
            "observed": expired_ratio(entry, samples),
            "expected": round(entry.expiration_probability(), 6),
        })
        if entry.ttl_remaining() == 0:
            break
        wait(step)
    return rows


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Show early expiration probability over an entry's lifetime.")
    parser.add_argument("--delta", type=float, default=1.0, help="Seconds the computation takes")
    parser.add_argument("--ttl", type=float, default=60.0, help="Entry time-to-live in seconds")
    parser.add_argument("--beta", type=float, default=None, help="XFetch beta (defaults to XFETCH_DEFAULT_BETA)")
    parser.add_argument("--step", type=float, default=0.5, help="Seconds between samples")
    parser.add_argument("--samples", type=int, default=1000, help="Expiration tests per step")
    parser.add_argument("--realtime", action="store_true", help="Sleep instead of simulating time")
    parser.add_argument("--json", action="store_true", help="Print rows as JSON")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)
    beta = settings.default_beta if args.beta is None else args.beta

    try:
        rows = run(
            delta=args.delta,
            ttl=args.ttl,
            beta=beta,
            step=args.step,
            samples=args.samples,
            realtime=args.realtime,
        )
    except KeyboardInterrupt:
        return 130
    except ValueError as exc:
        print(f"[xfetch] invalid arguments: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(rows, indent=2))
    else:
        for row in rows:
            print(f"{row['elapsed']:>8} {row['observed']:.3f} {row['expected']:.3f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
