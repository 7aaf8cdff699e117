"""Attempt outcomes — the tagged result of a single fetch attempt.

Each attempt of the retry engine produces exactly one of four variants, and
the engine ``match``-es on the variant to pick its next state::

    ┌──────────────────────┬───────────────────────────┬──────────────────┐
    │ Variant              │ Produced by               │ Engine reaction  │
    ├──────────────────────┼───────────────────────────┼──────────────────┤
    │ AttemptSuccess       │ fetch returned a str      │ done             │
    │ AttemptTimeout       │ TimeoutError (deadline)   │ retry, no delay  │
    │                      │ retryable TIMEOUT error   │                  │
    │ AttemptTransientFail │ OSError, retryable        │ retry, backoff   │
    │                      │ ParafetchError            │                  │
    │ AttemptOtherFailure  │ non-retryable Parafetch-  │ done (failed)    │
    │                      │ Error, any other error,   │                  │
    │                      │ non-str payload           │                  │
    └──────────────────────┴───────────────────────────┴──────────────────┘

Nothing is carried from one attempt to the next except the attempt index:
the outcome of attempt *n* is a fresh value, not a mutated "last error".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from parafetch.core.errors import ErrorCategory, ParafetchError


@dataclass(frozen=True, slots=True)
class AttemptSuccess:
    """The capability returned ``data`` before the deadline."""

    data: str

    def __repr__(self) -> str:
        return f"AttemptSuccess({self.data!r})"


@dataclass(frozen=True, slots=True)
class AttemptTimeout:
    """The attempt did not complete inside its timeout window."""

    error: Exception


@dataclass(frozen=True, slots=True)
class AttemptTransientFailure:
    """The capability raised an explicit I/O-style failure."""

    error: Exception


@dataclass(frozen=True, slots=True)
class AttemptOtherFailure:
    """The capability raised something the engine does not know how to retry."""

    error: Exception


AttemptOutcome: TypeAlias = (
    AttemptSuccess | AttemptTimeout | AttemptTransientFailure | AttemptOtherFailure
)


def classify_error(error: Exception) -> AttemptOutcome:
    """Map an exception raised by an attempt onto its outcome variant.

    ``TimeoutError`` is tested first: it subclasses ``OSError`` and would
    otherwise be taken for a transient I/O failure. A :class:`ParafetchError`
    carries its own ``retryable`` flag, and a retryable one in the
    ``TIMEOUT`` category is retried without delay.
    """
    if isinstance(error, TimeoutError):
        return AttemptTimeout(error)
    if isinstance(error, ParafetchError):
        if not error.retryable:
            return AttemptOtherFailure(error)
        if error.category is ErrorCategory.TIMEOUT:
            return AttemptTimeout(error)
        return AttemptTransientFailure(error)
    if isinstance(error, OSError):
        return AttemptTransientFailure(error)
    return AttemptOtherFailure(error)


__all__ = [
    "AttemptSuccess",
    "AttemptTimeout",
    "AttemptTransientFailure",
    "AttemptOtherFailure",
    "AttemptOutcome",
    "classify_error",
]
