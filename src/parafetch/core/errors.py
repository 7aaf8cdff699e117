"""
Structured error types for parafetch.

Provides a small hierarchy of typed errors carrying a category, a retry flag,
structured context and an optional chained cause. The retry engine never lets
these escape :func:`~parafetch.execution.orchestrator.fetch_all`; they exist so
that fetch capabilities can signal *what kind* of failure happened, and so that
configuration problems fail loudly at construction time.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      ParafetchError                          │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │   TransientError           ConfigError                       │
        │   (NETWORK, retryable)     (CONFIG, never retryable)         │
        │        │                                                     │
        │   NetworkError                                               │
        │                                                              │
        └─────────────────────────────────────────────────────────────┘

    How the retry engine sees raised exceptions:

        TimeoutError / TimeoutExpired   → timeout     (retry, no delay)
        ParafetchError, retryable=False → unclassified (terminal)
        ParafetchError, TIMEOUT         → timeout     (retry, no delay)
        ParafetchError, retryable       → transient   (retry, backoff)
        OSError                         → transient   (retry, backoff)
        anything else                   → unclassified (terminal)

Examples:
    Raising a transient error from a fetch capability:

    >>> raise NetworkError("connection reset").with_context(url="mock://a")
    Traceback (most recent call last):
    ...
    NetworkError: connection reset

    Serialising for logs:

    >>> ConfigError("max_attempts must be >= 1").to_dict()["category"]
    'CONFIG'

Guardrails:
    ❌ DON'T: Raise TransientError for failures that will never recover
    ✅ DO: Raise a plain exception (or ParafetchError) to stop retries

    ❌ DON'T: Swallow the original exception when wrapping
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context, parafetch
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    NETWORK = "NETWORK"      # Connection refused, reset, DNS
    TIMEOUT = "TIMEOUT"      # Attempt deadline exceeded
    CONFIG = "CONFIG"        # Invalid policy or settings
    INTERNAL = "INTERNAL"    # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"      # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        source_name: Name of the source being fetched
        url: Opaque URL handed to the fetch capability
        attempt: Zero-based attempt index, when known
        metadata: Additional key-value pairs

    Examples:
        >>> ErrorContext(source_name="primary", attempt=1).to_dict()
        {'source_name': 'primary', 'attempt': 1}
    """

    source_name: str | None = None
    url: str | None = None
    attempt: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["source_name", "url", "attempt"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ParafetchError(Exception):
    """
    Base exception for all parafetch errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers only pass a message in the common case.

    Examples:
        >>> error = ParafetchError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> try:
        ...     raise ConnectionError("DNS lookup failed")
        ... except ConnectionError as e:
        ...     error = ParafetchError("Network error", cause=e)
        >>> error.cause
        ConnectionError('DNS lookup failed')
    """

    # Default category for this error type
    default_category: ErrorCategory = ErrorCategory.INTERNAL
    # Default retryable setting
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ParafetchError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NetworkError("reset").with_context(source_name="primary", url=url)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(ParafetchError):
    """
    Temporary I/O-style failure that may succeed on retry.

    The retry engine treats this exactly like a raised ``OSError``: it backs
    off exponentially and tries again while attempts remain.
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class NetworkError(TransientError):
    """Network-related transient error."""

    default_category = ErrorCategory.NETWORK


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ParafetchError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# UTILITIES
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error.

    ``TimeoutError`` is checked before ``OSError`` because it is an
    ``OSError`` subclass.
    """
    if isinstance(error, ParafetchError):
        return error.category
    if isinstance(error, TimeoutError):
        return ErrorCategory.TIMEOUT
    if isinstance(error, OSError):
        return ErrorCategory.NETWORK
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ParafetchError",
    "TransientError",
    "NetworkError",
    "ConfigError",
    "categorize_error",
]
