"""
Structural protocols used across parafetch.

The fetch core depends on the *shape* of its collaborator, never on a concrete
transport. Anything with an ``async fetch(url) -> str`` method can be
orchestrated: an HTTP client wrapper, a file reader, the bundled
:class:`~parafetch.service.mock.MockApiService`, or an ``AsyncMock`` in tests.

Guardrails:
    ❌ DON'T: Add retry or timeout logic inside a FetchCapability
    ✅ DO: Let the retry engine own attempts; capabilities make one call

    ❌ DON'T: Return partial data on failure
    ✅ DO: Raise (``OSError`` / ``TransientError`` for retryable I/O problems)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class FetchCapability(Protocol):
    """
    Single-call fetch contract consumed by the retry engine.

    ``fetch`` may complete after any delay, raise an I/O-style error, or never
    return at all. It must be safe to call from many tasks at once.
    """

    async def fetch(self, url: str) -> str:
        """Fetch ``url`` once and return its payload."""
        ...


__all__ = ["FetchCapability"]
