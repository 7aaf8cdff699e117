"""Fetch orchestrator — asyncio fan-out / fan-in over prioritized sources.

WHY
───
Callers usually want the same payload from several places (primary API,
backup, cache) and do not want to pay for them one after another. The
orchestrator starts one task per source, lets each run the retry engine on its
own, and hands back every result ordered by priority.

ARCHITECTURE
────────────
::

    ParallelFetcher(api, policy)
      └── .fetch_all(sources)
            │
            ├── asyncio.TaskGroup ─ one task per Source
            │     └── RetryEngine.fetch_with_retry(source)  (no shared state)
            │
            └── join ─▶ sorted(results, key=priority, reverse=True)

    Per-source failures come back as FetchResult(success=False); they never
    abort sibling tasks. Cancelling the caller cancels every task and the
    call raises CancelledError instead of returning a partial list.

Related modules:
    retry.py    — per-source state machine
    timeout.py  — per-attempt deadline

Example::

    fetcher = ParallelFetcher(MockApiService())
    results = await fetcher.fetch_all([
        Source("Low", "mock://low", 1),
        Source("High", "mock://high", 3),
    ])
    [r.source for r in results]  # ["High", "Low"]
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from operator import attrgetter

from parafetch.core.logging import get_logger
from parafetch.core.models import FetchResult, Source
from parafetch.core.protocols import FetchCapability
from parafetch.execution.retry import RetryEngine, RetryObserver, RetryPolicy, SleepFn

logger = get_logger(__name__)


def sort_by_priority(results: Sequence[FetchResult]) -> list[FetchResult]:
    """Order results by descending priority, keeping input order among ties."""
    return sorted(results, key=attrgetter("priority"), reverse=True)


class ParallelFetcher:
    """Fetches many sources concurrently and orders the results.

    Parameters
    ----------
    api : FetchCapability
        Shared fetch capability; must tolerate concurrent calls.
    policy : RetryPolicy, optional
        Attempt budget, per-attempt timeout and backoff for every source.
    sleep, on_retry
        Passed through to :class:`~parafetch.execution.retry.RetryEngine`.
    """

    def __init__(
        self,
        api: FetchCapability,
        policy: RetryPolicy | None = None,
        *,
        sleep: SleepFn | None = None,
        on_retry: RetryObserver | None = None,
    ) -> None:
        self._engine = RetryEngine(api, policy, sleep=sleep, on_retry=on_retry)

    @property
    def policy(self) -> RetryPolicy:
        return self._engine.policy

    async def fetch_all(self, sources: Sequence[Source]) -> list[FetchResult]:
        """Fetch every source concurrently.

        Returns:
            One :class:`FetchResult` per source, highest priority first.

        Raises:
            asyncio.CancelledError: If the calling task is cancelled before
                every source has finished.
        """
        sources = list(sources)
        if not sources:
            return []

        started = time.monotonic()
        logger.info(
            "fetch.start",
            sources=len(sources),
            max_attempts=self.policy.max_attempts,
            attempt_timeout=self.policy.attempt_timeout,
        )

        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(
                    self._engine.fetch_with_retry(source),
                    name=f"fetch:{source.name}",
                )
                for source in sources
            ]

        results = sort_by_priority([task.result() for task in tasks])

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "fetch.complete",
            sources=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            duration_seconds=round(time.monotonic() - started, 3),
        )
        return results


async def fetch_all(
    api: FetchCapability,
    sources: Sequence[Source],
    policy: RetryPolicy | None = None,
) -> list[FetchResult]:
    """Convenience wrapper around :meth:`ParallelFetcher.fetch_all`."""
    return await ParallelFetcher(api, policy).fetch_all(sources)


def fetch_all_blocking(
    api: FetchCapability,
    sources: Sequence[Source],
    policy: RetryPolicy | None = None,
) -> list[FetchResult]:
    """Run :func:`fetch_all` to completion from synchronous code.

    Must not be called from inside a running event loop.
    """
    return asyncio.run(fetch_all(api, sources, policy))


__all__ = [
    "ParallelFetcher",
    "fetch_all",
    "fetch_all_blocking",
    "sort_by_priority",
]
