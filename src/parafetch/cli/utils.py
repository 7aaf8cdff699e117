"""
CLI utility helpers — source parsing and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from parafetch.core.models import FetchResult, Source

console = Console()
err_console = Console(stderr=True)


# ── Input helpers ────────────────────────────────────────────────────────


def parse_source(raw: str) -> Source:
    """Parse ``name=url[@priority]`` into a :class:`Source`.

    A trailing ``@<int>`` is read as the priority; anything else after the
    ``=`` is the URL, ``@`` characters included.

    Raises:
        typer.BadParameter: If the name or URL is missing.
    """
    name, sep, rest = raw.partition("=")
    name = name.strip()
    if not sep or not name or not rest:
        raise typer.BadParameter(f"Expected NAME=URL[@PRIORITY], got {raw!r}")

    url, priority = rest, 0
    head, at, tail = rest.rpartition("@")
    if at and head:
        try:
            priority = int(tail)
        except ValueError:
            pass
        else:
            url = head

    return Source(name=name, url=url, priority=priority)


def parse_sources(values: Sequence[str]) -> list[Source]:
    """Parse every SOURCE argument, rejecting duplicate names."""
    sources = [parse_source(raw) for raw in values]
    seen: set[str] = set()
    for source in sources:
        if source.name in seen:
            raise typer.BadParameter(f"Duplicate source name: {source.name!r}")
        seen.add(source.name)
    return sources


# ── Output helpers ───────────────────────────────────────────────────────


def print_results(results: Sequence[FetchResult], fmt: str = "table") -> None:
    """Render fetch results as a rich table or JSON."""
    if fmt == "json":
        console.print_json(json.dumps([r.to_dict() for r in results]))
        return

    table = Table(title="Fetch results")
    table.add_column("Priority", justify="right")
    table.add_column("Source", style="bold")
    table.add_column("Status")
    table.add_column("Data")
    for r in results:
        status = "[green]ok[/green]" if r.success else "[red]failed[/red]"
        table.add_row(str(r.priority), r.source, status, r.data or "")
    console.print(table)


def print_mapping(title: str, values: dict[str, Any], fmt: str = "table") -> None:
    """Render a flat mapping as a two-column table or JSON."""
    if fmt == "json":
        console.print_json(json.dumps(values, default=str))
        return

    table = Table(title=title)
    table.add_column("Key")
    table.add_column("Value")
    for key, value in values.items():
        table.add_row(key, str(value))
    console.print(table)
