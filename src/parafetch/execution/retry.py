"""Retry engine — bounded, failure-aware retries for one source.

The engine runs a small state machine per source::

    Attempting(n) ──▶ AttemptSuccess ─────────────────────────▶ Success
         ▲        ├─▶ AttemptTimeout ──── n+1 < max ──────────┐
         │        ├─▶ AttemptTransientFailure ── n+1 < max ──┐│
         │        │        sleep(base * 2**n)                 ││
         │        │                                           ││
         └────────┼───────────────────────────────────────────┴┘
                  │   (n+1 == max on a retryable outcome) ──▶ ExhaustedRetries
                  └─▶ AttemptOtherFailure ────────────────────▶ Failed

Timeouts are treated as one-off stalls and retried at once. Transient I/O
failures suggest an overloaded upstream, so those back off exponentially. No
delay is ever taken after the final attempt.

Example::

    engine = RetryEngine(api, RetryPolicy(max_attempts=3))
    result = await engine.fetch_with_retry(Source("primary", "https://a", 10))
    if result.success:
        print(result.data)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from parafetch.core.constants import (
    ATTEMPT_TIMEOUT_SECONDS,
    BACKOFF_BASE_SECONDS,
    BACKOFF_MULTIPLIER,
    MAX_ATTEMPTS,
)
from parafetch.core.errors import ConfigError, ErrorContext, ParafetchError, categorize_error
from parafetch.core.logging import LogContext, get_logger
from parafetch.core.models import FetchResult, Source
from parafetch.core.protocols import FetchCapability
from parafetch.execution.outcome import (
    AttemptOtherFailure,
    AttemptOutcome,
    AttemptSuccess,
    AttemptTimeout,
    AttemptTransientFailure,
    classify_error,
)
from parafetch.execution.timeout import run_with_timeout_async

if TYPE_CHECKING:
    from parafetch.core.settings import FetchSettings

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
RetryObserver = Callable[[Source, int, AttemptOutcome, float], None]


@dataclass
class ExponentialBackoff:
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) ± jitter

    Attributes:
        base_delay: Delay after the first failed attempt, in seconds
        multiplier: Exponential multiplier (default: 2)
        max_delay: Optional cap in seconds
        jitter: Randomise each delay by ``jitter_range`` (off by default)
        jitter_range: Fraction of the delay used as jitter amplitude
    """

    base_delay: float = BACKOFF_BASE_SECONDS
    multiplier: float = BACKOFF_MULTIPLIER
    max_delay: float | None = None
    jitter: bool = False
    jitter_range: float = 0.25

    def __post_init__(self) -> None:
        if self.base_delay < 0:
            raise ConfigError(f"base_delay must be >= 0, got {self.base_delay}")
        if self.max_delay is not None and self.max_delay < 0:
            raise ConfigError(f"max_delay must be >= 0, got {self.max_delay}")

    def next_delay(self, attempt: int) -> float:
        """Delay to wait after failed attempt ``attempt`` (zero-based)."""
        delay = self.base_delay * (self.multiplier ** attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = max(0.0, delay)

        return delay


@dataclass(frozen=True)
class RetryPolicy:
    """How many attempts a source gets, and how long each may take.

    Raises:
        ConfigError: If ``max_attempts < 1`` or ``attempt_timeout <= 0``
    """

    max_attempts: int = MAX_ATTEMPTS
    attempt_timeout: float = ATTEMPT_TIMEOUT_SECONDS
    backoff: ExponentialBackoff = field(default_factory=ExponentialBackoff)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.attempt_timeout <= 0:
            raise ConfigError(
                f"attempt_timeout must be positive, got {self.attempt_timeout}"
            )

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> RetryPolicy:
        """Build a policy from :class:`~parafetch.core.settings.FetchSettings`."""
        return cls(
            max_attempts=settings.max_attempts,
            attempt_timeout=settings.attempt_timeout,
            backoff=ExponentialBackoff(base_delay=settings.backoff_base),
        )

    def with_max_attempts(self, max_attempts: int) -> RetryPolicy:
        """Copy of this policy with a different attempt budget."""
        return RetryPolicy(
            max_attempts=max_attempts,
            attempt_timeout=self.attempt_timeout,
            backoff=self.backoff,
        )


def _failure_fields(error: Exception, source: Source, attempt: int) -> dict[str, Any]:
    """Structured log fields describing a failed attempt.

    A :class:`ParafetchError` is annotated in place, so context it already
    carries is kept. The source name comes from the bound log context.
    """
    if isinstance(error, ParafetchError):
        context = error.with_context(url=source.url, attempt=attempt).context
    else:
        context = ErrorContext(url=source.url, attempt=attempt)
    return {
        "error_type": type(error).__name__,
        "error": str(error),
        "category": categorize_error(error).value,
        **context.to_dict(),
    }


class RetryEngine:
    """Fetches a single source with per-attempt timeouts and retries.

    The engine keeps no per-source state between calls, so one instance can
    serve any number of sources concurrently.

    Args:
        api: Fetch capability shared by all sources
        policy: Attempt budget, timeout and backoff (defaults to RetryPolicy())
        sleep: Coroutine used for backoff waits (defaults to ``asyncio.sleep``)
        on_retry: Optional callback ``(source, attempt, outcome, delay)`` run
            before each retry
    """

    def __init__(
        self,
        api: FetchCapability,
        policy: RetryPolicy | None = None,
        *,
        sleep: SleepFn | None = None,
        on_retry: RetryObserver | None = None,
    ) -> None:
        self._api = api
        self._policy = policy or RetryPolicy()
        self._sleep = sleep or asyncio.sleep
        self._on_retry = on_retry

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def attempt(self, source: Source, attempt: int) -> AttemptOutcome:
        """Run one timed call against the capability and classify it.

        ``asyncio.CancelledError`` is not an ``Exception`` and passes through.
        """
        try:
            data = await run_with_timeout_async(
                self._api.fetch(source.url),
                self._policy.attempt_timeout,
                operation=f"fetch {source.name} (attempt {attempt})",
            )
        except Exception as exc:
            return classify_error(exc)
        if not isinstance(data, str):
            return AttemptOtherFailure(
                TypeError(f"fetch returned {type(data).__name__}, expected str")
            )
        return AttemptSuccess(data)

    async def fetch_with_retry(
        self, source: Source, max_attempts: int | None = None
    ) -> FetchResult:
        """Fetch ``source`` until it succeeds, fails hard, or runs out of attempts.

        Args:
            source: Source to fetch
            max_attempts: Override the policy's attempt budget for this call

        Returns:
            A :class:`FetchResult`; per-source failures are never raised.
        """
        policy = self._policy
        if max_attempts is not None:
            policy = policy.with_max_attempts(max_attempts)
        last_attempt = policy.max_attempts - 1

        async with LogContext(source=source.name):
            for attempt in range(policy.max_attempts):
                outcome = await self.attempt(source, attempt)

                match outcome:
                    case AttemptSuccess(data):
                        logger.info("fetch.succeeded", attempt=attempt, attempts=attempt + 1)
                        return FetchResult.succeeded(source, data)
                    case AttemptTimeout(error):
                        logger.warning(
                            "fetch.attempt_timeout", **_failure_fields(error, source, attempt)
                        )
                        delay = 0.0
                    case AttemptTransientFailure(error):
                        logger.warning(
                            "fetch.attempt_io_error", **_failure_fields(error, source, attempt)
                        )
                        delay = policy.backoff.next_delay(attempt)
                    case AttemptOtherFailure(error):
                        logger.error(
                            "fetch.attempt_failed", **_failure_fields(error, source, attempt)
                        )
                        return FetchResult.failed(source)

                if attempt < last_attempt:
                    if self._on_retry is not None:
                        self._on_retry(source, attempt, outcome, delay)
                    if delay > 0:
                        await self._sleep(delay)

            logger.warning(
                "fetch.exhausted",
                attempts=policy.max_attempts,
                **_failure_fields(outcome.error, source, attempt),
            )
            return FetchResult.failed(source)


__all__ = [
    "ExponentialBackoff",
    "RetryPolicy",
    "RetryEngine",
    "SleepFn",
    "RetryObserver",
]
