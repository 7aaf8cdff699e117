"""Environment-driven settings for parafetch.

Defaults mirror :mod:`parafetch.core.constants`; every field can be overridden
with a ``PARAFETCH_``-prefixed environment variable or a ``.env`` file::

    PARAFETCH_ATTEMPT_TIMEOUT=2.5
    PARAFETCH_MAX_ATTEMPTS=5
    PARAFETCH_LOG_LEVEL=DEBUG

Examples:
    >>> from parafetch.core.settings import get_settings
    >>> get_settings().max_attempts
    3

Tags:
    settings, configuration, pydantic, environment, parafetch
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from parafetch.core.constants import (
    ATTEMPT_TIMEOUT_SECONDS,
    BACKOFF_BASE_SECONDS,
    MAX_ATTEMPTS,
)


class FetchSettings(BaseSettings):
    """Retry and logging configuration.

    Fields
    ──────
    attempt_timeout : Per-attempt deadline in seconds
    backoff_base    : First backoff delay after a transient I/O failure
    max_attempts    : Attempts per source before giving up
    log_level       : Structlog log level
    json_logs       : Force JSON (True) or console (False); None auto-detects
    """

    model_config = SettingsConfigDict(
        env_prefix="PARAFETCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Retry ────────────────────────────────────────────────────
    attempt_timeout: float = Field(default=ATTEMPT_TIMEOUT_SECONDS, gt=0)
    backoff_base: float = Field(default=BACKOFF_BASE_SECONDS, ge=0)
    max_attempts: int = Field(default=MAX_ATTEMPTS, ge=1)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level


_settings_cache: dict[str, FetchSettings] = {}


def get_settings(*, _force_reload: bool = False) -> FetchSettings:
    """Load, validate, and cache a :class:`FetchSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = FetchSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["FetchSettings", "get_settings", "clear_settings_cache"]
