"""Named tuning constants for parafetch.

Every time value is in seconds. The ``MOCK_*`` constants belong to
:class:`~parafetch.service.mock.MockApiService`, not to the fetch core.
"""

from __future__ import annotations

# ── Retry engine ─────────────────────────────────────────────────────────

ATTEMPT_TIMEOUT_SECONDS: float = 5.0
BACKOFF_BASE_SECONDS: float = 0.1
BACKOFF_MULTIPLIER: float = 2.0
MAX_ATTEMPTS: int = 3

# ── Mock collaborator ────────────────────────────────────────────────────

MOCK_DELAY_MIN_SECONDS: float = 0.01
MOCK_DELAY_MAX_SECONDS: float = 2.0
MOCK_ERROR_RATE: float = 0.3

__all__ = [
    "ATTEMPT_TIMEOUT_SECONDS",
    "BACKOFF_BASE_SECONDS",
    "BACKOFF_MULTIPLIER",
    "MAX_ATTEMPTS",
    "MOCK_DELAY_MIN_SECONDS",
    "MOCK_DELAY_MAX_SECONDS",
    "MOCK_ERROR_RATE",
]
