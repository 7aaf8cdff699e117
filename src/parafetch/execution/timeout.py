"""Timeout enforcement for fetch attempts.

Every call into a fetch capability is bounded by a deadline. Expiry of that
deadline is a *local* event: it raises :class:`TimeoutExpired` in the task that
owns the attempt, and the retry engine decides what to do next. Cancellation
of the surrounding task is a different thing entirely and is never translated
into a timeout.

Architecture:
    ::

        ┌────────────────────────────────────────────────────────────────┐
        │ await run_with_timeout_async(api.fetch(url), 5.0, "fetch")     │
        │ # Raises TimeoutExpired if > 5 seconds                         │
        └────────────────────────────────────────────────────────────────┘
                              │
                              │ uses
                              ▼
        ┌────────────────────────────────────────────────────────────────┐
        │               asyncio.timeout (Python 3.11+)                   │
        │  - Cancels the attempt on expiry                               │
        │  - expired() tells our deadline apart from outer cancellation  │
        └────────────────────────────────────────────────────────────────┘

Examples:
    >>> async with with_deadline_async(10.0, "fetch primary") as ctx:
    ...     data = await api.fetch(url)
    ...     print(f"took {ctx.elapsed:.2f}s")

    >>> data = await run_with_timeout_async(api.fetch(url), 5.0, "fetch")

Guardrails:
    - Always handle TimeoutExpired at the attempt level
    - Never catch asyncio.CancelledError here; it must reach the caller

Tags:
    timeout, deadline, resilience, execution, parafetch
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")


class TimeoutExpired(TimeoutError):
    """Raised when an operation exceeds its deadline.

    Inherits from built-in TimeoutError for broad exception handling.

    Attributes:
        timeout: The timeout value that was exceeded
        elapsed: How long the operation ran before being interrupted
        operation: Name/description of the operation
    """

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
    ):
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation

        msg = f"Operation '{operation}' timed out after {timeout}s"

        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"

        super().__init__(msg)


@dataclass
class DeadlineContext:
    """Context for tracking deadline state.

    Attributes:
        timeout_seconds: Original timeout value in seconds
        operation: Name/description of the operation
        start_time: When the deadline context started
    """

    timeout_seconds: float
    operation: str = "operation"
    start_time: float = field(default_factory=time.monotonic)

    @property
    def elapsed(self) -> float:
        """Elapsed time since start in seconds."""
        return time.monotonic() - self.start_time


def _validate_timeout(seconds: float) -> None:
    if seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {seconds}")


@asynccontextmanager
async def with_deadline_async(
    seconds: float, operation: str | None = None
) -> AsyncIterator[DeadlineContext]:
    """Async context manager for enforcing a time limit.

    Args:
        seconds: Maximum time allowed
        operation: Name/description for error messages

    Yields:
        DeadlineContext for reading elapsed time

    Raises:
        TimeoutExpired: If the deadline is exceeded
        ValueError: If seconds <= 0
    """
    _validate_timeout(seconds)

    ctx = DeadlineContext(timeout_seconds=seconds, operation=operation or "operation")

    try:
        async with asyncio.timeout(seconds) as scope:
            yield ctx
    except TimeoutError:
        # A TimeoutError raised by the body itself is not ours to rename.
        if not scope.expired():
            raise
        raise TimeoutExpired(
            timeout=ctx.timeout_seconds,
            elapsed=ctx.elapsed,
            operation=ctx.operation,
        ) from None


async def run_with_timeout_async(
    awaitable: Awaitable[T],
    timeout_seconds: float,
    operation: str | None = None,
) -> T:
    """Await ``awaitable`` under a deadline.

    Args:
        awaitable: Coroutine or future to await
        timeout_seconds: Maximum execution time
        operation: Name for error messages

    Returns:
        Result of the awaitable

    Raises:
        TimeoutExpired: If execution exceeds timeout
        Exception: Any exception raised by the awaitable
    """
    async with with_deadline_async(timeout_seconds, operation):
        return await awaitable


__all__ = [
    "TimeoutExpired",
    "DeadlineContext",
    "with_deadline_async",
    "run_with_timeout_async",
]
