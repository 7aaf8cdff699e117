#!/usr/bin/env python3
"""Parallel Fetch — prioritized sources against a flaky mock service.

WHAT HAPPENS
────────────
Every source gets its own task. Each task retries on its own:

    Failure            Next step
    ────────────────── ──────────────────────────────
    attempt timed out  retry immediately
    ConnectionError    wait 0.1 s, 0.2 s, ... then retry
    anything else      give up on this source
    3rd failure        give up on this source

When all tasks finish the results come back highest priority first, whatever
order they completed in. A failing source never takes the others down.

ARCHITECTURE
────────────
    ┌──────────────────┐
    │ ParallelFetcher   │── TaskGroup ──┬── RetryEngine(primary)
    └────────┬─────────┘               ├── RetryEngine(backup)
             │                         └── RetryEngine(cache)
             ▼                                   │
    sorted [FetchResult]              MockApiService.fetch(url)

Run: python examples/01_parallel_fetch.py
"""
import asyncio

from parafetch import ParallelFetcher, RetryPolicy, Source
from parafetch.core.logging import configure_logging
from parafetch.service import MockApiService


def report(source, attempt, outcome, delay):
    print(f"  ↻ {source.name}: attempt {attempt} → {type(outcome).__name__}, waiting {delay:.2f}s")


async def main():
    configure_logging(level="WARNING", json_format=False)

    print("=" * 60)
    print("Parallel Fetch Example")
    print("=" * 60)

    sources = [
        Source("Cache", "mock://cache", priority=1),
        Source("Primary API", "mock://primary", priority=10),
        Source("Backup API", "mock://backup", priority=5),
    ]

    # === 1. Flaky service, default policy ===
    print("\n--- 1. Default policy (3 attempts, 5 s timeout) ---")
    api = MockApiService(error_rate=0.5, delay_range=(0.01, 0.3), seed=7)
    fetcher = ParallelFetcher(api, on_retry=report)

    results = await fetcher.fetch_all(sources)
    for r in results:
        status = "✓" if r.success else "✗"
        print(f"  {status} [{r.priority:>2}] {r.source:<12} {r.data}")
    print(f"  Calls made: {api.call_count}")

    # === 2. Tight timeout ===
    print("\n--- 2. 50 ms timeout against 0.1-0.3 s latency ---")
    slow = MockApiService(error_rate=0.0, delay_range=(0.1, 0.3))
    results = await ParallelFetcher(slow, RetryPolicy(attempt_timeout=0.05)).fetch_all(sources)
    print(f"  Succeeded: {sum(r.success for r in results)} / {len(results)}")
    print(f"  Calls made: {slow.call_count} (3 timed-out attempts per source)")

    print("\n" + "=" * 60)
    print("Done")


if __name__ == "__main__":
    asyncio.run(main())
