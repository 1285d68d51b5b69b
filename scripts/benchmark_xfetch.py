#!/usr/bin/env python3
"""
Micro-benchmark for entry construction and the expiration test.

Mirrors the common read path: build an entry with a fixed delta and TTL,
test it, and return the value if it is still fresh.

Usage::

    python scripts/benchmark_xfetch.py --iterations 200000
"""

import argparse
import sys
import os
import time

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from xfetch.entry import CacheEntry  # noqa: E402


def xfetch(value: int):
    entry = (
        CacheEntry.builder(lambda: value)
        .with_ttl(lambda _: 120)
        .with_delta(lambda _: 10)
        .build()
    )
    if entry.is_expired():
        return None
    return entry.get()


def bench(name: str, func, iterations: int) -> dict:
    start = time.perf_counter()
    for _ in range(iterations):
        func()
    total = time.perf_counter() - start
    return {"name": name, "iterations": iterations, "total_s": total, "per_call_us": total / iterations * 1e6}


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark xfetch build and expiration test.")
    parser.add_argument("--iterations", type=int, default=100_000, help="Calls per benchmark")
    args = parser.parse_args()

    shared = CacheEntry.builder(lambda: 20).with_ttl(lambda _: 120).with_delta(lambda _: 10).build()
    results = [
        bench("build_and_test", lambda: xfetch(20), args.iterations),
        bench("is_expired", shared.is_expired, args.iterations),
    ]

    for result in results:
        print(f"{result['name']:<16} {result['per_call_us']:8.3f} us/call  ({result['iterations']} iterations)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
