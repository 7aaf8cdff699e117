"""parafetch.execution — concurrent fetching with retry and timeouts.

ARCHITECTURE
────────────
::

    ParallelFetcher.fetch_all(sources)      orchestrator.py
      │  asyncio.TaskGroup, one task per source
      ▼
    RetryEngine.fetch_with_retry(source)    retry.py
      │  up to RetryPolicy.max_attempts attempts
      ├── run_with_timeout_async(...)       timeout.py
      └── classify_error(exc)               outcome.py
      ▼
    FetchResult (one per source, sorted by priority)
"""

from parafetch.execution.orchestrator import (
    ParallelFetcher,
    fetch_all,
    fetch_all_blocking,
    sort_by_priority,
)
from parafetch.execution.outcome import (
    AttemptOtherFailure,
    AttemptOutcome,
    AttemptSuccess,
    AttemptTimeout,
    AttemptTransientFailure,
    classify_error,
)
from parafetch.execution.retry import ExponentialBackoff, RetryEngine, RetryPolicy
from parafetch.execution.timeout import (
    DeadlineContext,
    TimeoutExpired,
    run_with_timeout_async,
    with_deadline_async,
)

__all__ = [
    # Orchestration
    "ParallelFetcher",
    "fetch_all",
    "fetch_all_blocking",
    "sort_by_priority",
    # Retry
    "ExponentialBackoff",
    "RetryEngine",
    "RetryPolicy",
    # Outcomes
    "AttemptOutcome",
    "AttemptSuccess",
    "AttemptTimeout",
    "AttemptTransientFailure",
    "AttemptOtherFailure",
    "classify_error",
    # Timeout
    "DeadlineContext",
    "TimeoutExpired",
    "run_with_timeout_async",
    "with_deadline_async",
]
