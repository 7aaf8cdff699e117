"""
Root Typer application for the parafetch CLI.

Runs the orchestrator against :class:`~parafetch.service.mock.MockApiService`,
which makes the retry and ordering behaviour visible without a network::

    parafetch fetch primary=mock://a@10 backup=mock://b@5 --error-rate 0.5
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

import typer
from pydantic import ValidationError

from parafetch import __version__
from parafetch.cli.utils import err_console, parse_sources, print_mapping, print_results
from parafetch.core.constants import (
    MOCK_DELAY_MAX_SECONDS,
    MOCK_DELAY_MIN_SECONDS,
    MOCK_ERROR_RATE,
)
from parafetch.core.errors import ConfigError
from parafetch.core.logging import configure_logging
from parafetch.core.settings import FetchSettings, get_settings
from parafetch.execution.orchestrator import fetch_all_blocking
from parafetch.execution.retry import ExponentialBackoff, RetryPolicy
from parafetch.service.mock import MockApiService

app = typer.Typer(
    name="parafetch",
    help="parafetch — concurrent prioritized fetching with retries.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"parafetch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """parafetch CLI — fetch mock sources and inspect configuration."""


# ── Commands ─────────────────────────────────────────────────────────────


def _load_settings() -> FetchSettings:
    try:
        return get_settings()
    except ValidationError as e:
        err_console.print(f"[red]Invalid PARAFETCH_* settings:[/red]\n{e}")
        raise typer.Exit(code=2) from e


def _check_format(value: str) -> str:
    if value not in ("table", "json"):
        raise typer.BadParameter("Output format must be 'table' or 'json'")
    return value


@app.command("fetch")
def fetch(
    sources: list[str] = typer.Argument(..., help="Sources as NAME=URL[@PRIORITY]."),
    max_attempts: Optional[int] = typer.Option(None, "--max-attempts", "-n", help="Attempts per source."),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-attempt timeout in seconds."),
    backoff: Optional[float] = typer.Option(None, "--backoff", "-b", help="Base backoff delay in seconds."),
    error_rate: float = typer.Option(MOCK_ERROR_RATE, "--error-rate", help="Mock failure probability."),
    min_delay: float = typer.Option(MOCK_DELAY_MIN_SECONDS, "--min-delay", help="Mock minimum latency."),
    max_delay: float = typer.Option(MOCK_DELAY_MAX_SECONDS, "--max-delay", help="Mock maximum latency."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for repeatable mock runs."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override PARAFETCH_LOG_LEVEL."),
    format: str = typer.Option("table", "--format", "-f", callback=_check_format, help="Output format: table, json"),
) -> None:
    """Fetch SOURCES concurrently from the mock service and print the ordered results."""
    settings = _load_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)

    parsed = parse_sources(sources)
    try:
        overrides: dict[str, Any] = {}
        if max_attempts is not None:
            overrides["max_attempts"] = max_attempts
        if timeout is not None:
            overrides["attempt_timeout"] = timeout
        if backoff is not None:
            overrides["backoff"] = ExponentialBackoff(base_delay=backoff)
        policy = replace(RetryPolicy.from_settings(settings), **overrides)
        api = MockApiService(error_rate=error_rate, delay_range=(min_delay, max_delay), seed=seed)
    except (ConfigError, ValueError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=2) from e

    results = fetch_all_blocking(api, parsed, policy)
    print_results(results, format)

    if not any(r.success for r in results):
        raise typer.Exit(code=1)


@app.command("config")
def show_config(
    format: str = typer.Option("table", "--format", "-f", callback=_check_format, help="Output format: table, json"),
) -> None:
    """Show the effective settings."""
    settings = _load_settings()
    print_mapping("Settings", settings.model_dump(), format)


if __name__ == "__main__":
    app()
