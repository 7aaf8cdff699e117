"""
Shared pytest fixtures and configuration for parafetch tests.

This module provides:
- Logging / settings cleanup fixtures for test isolation
- A recording ``sleep`` so backoff waits can be asserted without waiting
- A default single source

Helpers that are not fixtures live in ``tests._support``.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from parafetch.core.logging import clear_context
from parafetch.core.models import Source
from parafetch.core.settings import clear_settings_cache
from tests._support.fetch_doubles import RecordingSleep


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Restore structlog defaults and drop bound context after each test."""
    yield
    clear_context()
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Run each test without PARAFETCH_* variables or a stray .env file."""
    for key in list(os.environ):
        if key.startswith("PARAFETCH_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Fetch Fixtures
# =============================================================================


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def source() -> Source:
    return Source("Source1", "url1", 1)
