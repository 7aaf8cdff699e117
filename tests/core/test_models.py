"""Tests for Source and FetchResult."""

from __future__ import annotations

import dataclasses

import pytest

from parafetch.core.models import FetchResult, Source


class TestSource:
    def test_default_priority(self):
        assert Source("a", "mock://a").priority == 0

    def test_frozen(self):
        source = Source("a", "mock://a", 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            source.priority = 2  # type: ignore[misc]


class TestFetchResult:
    def test_succeeded_copies_name_and_priority(self):
        result = FetchResult.succeeded(Source("primary", "u", 10), "payload")
        assert result == FetchResult(source="primary", data="payload", success=True, priority=10)

    def test_failed_has_no_data(self):
        result = FetchResult.failed(Source("backup", "u", -3))
        assert result.success is False
        assert result.data is None
        assert result.priority == -3

    def test_to_dict(self):
        result = FetchResult.succeeded(Source("a", "u", 2), "x")
        assert result.to_dict() == {"source": "a", "priority": 2, "success": True, "data": "x"}

    @pytest.mark.parametrize(
        ("data", "success"),
        [(None, True), ("payload", False)],
    )
    def test_rejects_mismatched_success_and_data(self, data, success):
        with pytest.raises(ValueError, match="does not match"):
            FetchResult(source="s", data=data, success=success, priority=1)
