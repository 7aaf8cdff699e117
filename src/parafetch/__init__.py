"""
parafetch — concurrent, prioritized fetching with per-attempt timeouts and
failure-aware retry.

    from parafetch import MockApiService, ParallelFetcher, Source

    fetcher = ParallelFetcher(MockApiService())
    results = await fetcher.fetch_all([Source("a", "mock://a", 2), Source("b", "mock://b", 1)])
"""

__version__ = "0.1.0"

from parafetch.core.errors import (  # noqa: E402
    ConfigError,
    NetworkError,
    ParafetchError,
    TransientError,
)
from parafetch.core.models import FetchResult, Source  # noqa: E402
from parafetch.core.protocols import FetchCapability  # noqa: E402
from parafetch.execution.orchestrator import (  # noqa: E402
    ParallelFetcher,
    fetch_all,
    fetch_all_blocking,
)
from parafetch.execution.retry import ExponentialBackoff, RetryEngine, RetryPolicy  # noqa: E402
from parafetch.service.mock import MockApiService  # noqa: E402

__all__ = [
    "__version__",
    "ConfigError",
    "ExponentialBackoff",
    "FetchCapability",
    "FetchResult",
    "MockApiService",
    "NetworkError",
    "ParafetchError",
    "ParallelFetcher",
    "RetryEngine",
    "RetryPolicy",
    "Source",
    "TransientError",
    "fetch_all",
    "fetch_all_blocking",
]
