"""Mock API Service — a flaky, slow fetch capability for demos and tests.

Manifesto:
Exercising the retry engine needs a collaborator that is sometimes slow and
sometimes broken, without a network. ``MockApiService`` sleeps a random
duration and fails a configurable share of calls with ``ConnectionError``.

ARCHITECTURE
────────────
::

    MockApiService
      ├── .fetch(url)   → "Data from {url}" after a random delay
      │                   or ConnectionError("Network error")
      ├── .calls        → per-URL call counts
      └── .call_count   → total calls

    Configuration:
      error_rate   — probability that a call fails (0.0 - 1.0)
      delay_range  — (min, max) seconds slept before answering
      seed         — seed for a private Random, for repeatable runs

Example::

    api = MockApiService(error_rate=0.0, delay_range=(0.0, 0.0))
    assert await api.fetch("mock://a") == "Data from mock://a"
    assert api.calls["mock://a"] == 1

Tags:
    parafetch, service, mock, testing
"""

from __future__ import annotations

import asyncio
import random
from collections import Counter
from dataclasses import dataclass, field

from parafetch.core.constants import (
    MOCK_DELAY_MAX_SECONDS,
    MOCK_DELAY_MIN_SECONDS,
    MOCK_ERROR_RATE,
)


@dataclass
class MockApiService:
    """Fetch capability with random latency and injected I/O errors.

    Attributes:
        error_rate: Probability in ``[0, 1]`` that a call raises ConnectionError.
        delay_range: Inclusive ``(min, max)`` latency in seconds.
        seed: Seed for the private random generator; ``None`` is unseeded.
    """

    error_rate: float = MOCK_ERROR_RATE
    delay_range: tuple[float, float] = (MOCK_DELAY_MIN_SECONDS, MOCK_DELAY_MAX_SECONDS)
    seed: int | None = None

    # Tracking
    calls: Counter[str] = field(default_factory=Counter, repr=False)
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.error_rate <= 1.0:
            raise ValueError(f"error_rate must be within [0, 1], got {self.error_rate}")
        low, high = self.delay_range
        if low < 0 or high < low:
            raise ValueError(f"Invalid delay_range: {self.delay_range}")
        self._rng = random.Random(self.seed)

    async def fetch(self, url: str) -> str:
        """Answer after a random delay, or fail with ``ConnectionError``."""
        self.calls[url] += 1
        await asyncio.sleep(self._rng.uniform(*self.delay_range))
        if self._rng.random() < self.error_rate:
            raise ConnectionError("Network error")
        return f"Data from {url}"

    @property
    def call_count(self) -> int:
        """Total number of calls across all URLs."""
        return sum(self.calls.values())

    def reset(self) -> None:
        """Clear call tracking."""
        self.calls.clear()
