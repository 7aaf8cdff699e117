"""Tests for CLI source parsing."""

from __future__ import annotations

import pytest
import typer

from parafetch.cli.utils import parse_source, parse_sources
from parafetch.core.models import Source


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("primary=mock://a@10", Source("primary", "mock://a", 10)),
        ("primary=mock://a", Source("primary", "mock://a", 0)),
        ("neg=mock://a@-2", Source("neg", "mock://a", -2)),
        ("auth=https://user@host/path", Source("auth", "https://user@host/path", 0)),
        ("auth=https://user@host@3", Source("auth", "https://user@host", 3)),
        (" spaced =u@1", Source("spaced", "u", 1)),
    ],
)
def test_parse_source(raw, expected):
    assert parse_source(raw) == expected


@pytest.mark.parametrize("raw", ["", "noequals", "=mock://a", "name="])
def test_parse_source_rejects_malformed(raw):
    with pytest.raises(typer.BadParameter):
        parse_source(raw)


def test_parse_sources_rejects_duplicates():
    with pytest.raises(typer.BadParameter, match="Duplicate"):
        parse_sources(["a=u1", "a=u2"])


def test_parse_sources_keeps_order():
    assert [s.name for s in parse_sources(["b=u1@1", "a=u2@2"])] == ["b", "a"]
