"""
parafetch.core — records, errors, protocols, logging and settings.

Everything the execution layer builds on. Nothing in here performs I/O or
spawns tasks.
"""

from parafetch.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    NetworkError,
    ParafetchError,
    TransientError,
    categorize_error,
)
from parafetch.core.models import FetchResult, Source
from parafetch.core.protocols import FetchCapability

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "FetchCapability",
    "FetchResult",
    "NetworkError",
    "ParafetchError",
    "Source",
    "TransientError",
    "categorize_error",
]
