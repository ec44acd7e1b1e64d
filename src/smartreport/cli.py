"""smartreport CLI — inspect history and saved reports."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console

from smartreport import __version__
from smartreport.analysis.flakiness import is_flaky, score_flakiness
from smartreport.config import SmartReportConfig, load_config, validate_config
from smartreport.errors import ConfigError, HistoryWriteError
from smartreport.memory.test_history import TestHistoryStore
from smartreport.models.summary import RunSummary
from smartreport.reporters.terminal import render_history, render_summary

logger = logging.getLogger(__name__)
console = Console()

_SENSITIVE_KEYS = {"api_key"}

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in a configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask(node: dict[str, Any]) -> None:
        for key, value in node.items():
            if isinstance(value, dict):
                _mask(value)
            elif key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    node[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    node[key] = "***"

    _mask(result)
    return result


def _load(root: str) -> SmartReportConfig:
    try:
        return load_config(root)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid .smartreport.yml: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(f"Invalid smartreport configuration: {exc}") from exc


def _history_store(config: SmartReportConfig, history: str | None) -> TestHistoryStore:
    path = Path(history) if history else config.history_path
    return TestHistoryStore(path, max_runs=max(config.report.max_history_runs, 1))


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.version_option(version=__version__, prog_name="smartreport")
def cli(*, verbose: bool) -> None:
    """smartreport — flakiness and performance trends for pytest runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.group("history")
def history_group() -> None:
    """Inspect or maintain the rolling test history."""


@history_group.command("show")
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Project root.")
@click.option("--history", default=None, help="History file (overrides configuration).")
@click.option("--flaky-only", is_flag=True, help="Only list tests classified as flaky.")
def history_show(root: str, history: str | None, *, flaky_only: bool) -> None:
    """Show flakiness and average duration per test."""
    config = _load(root)
    store = _history_store(config, history)
    data = store.load()

    if flaky_only:
        data = {
            test_id: entries
            for test_id, entries in data.items()
            if is_flaky(score_flakiness(entries).score)
        }

    if not data:
        console.print(f"[dim]No history found at {store.file_path}[/dim]")
        return

    console.print(render_history(data))


@history_group.command("clear")
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Project root.")
@click.option("--history", default=None, help="History file (overrides configuration).")
@click.confirmation_option(prompt="Delete the stored test history?")
def history_clear(root: str, history: str | None) -> None:
    """Delete the stored history."""
    store = _history_store(_load(root), history)
    store.clear()
    console.print(f"[green]✓[/green] Cleared {store.file_path}")


@history_group.command("prune")
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Project root.")
@click.option("--history", default=None, help="History file (overrides configuration).")
@click.option("--max-runs", type=click.IntRange(min=1), required=True, help="Runs to keep.")
def history_prune(root: str, history: str | None, max_runs: int) -> None:
    """Shrink the history window to the last MAX_RUNS runs per test."""
    store = _history_store(_load(root), history)
    try:
        removed = store.prune(max_runs)
    except HistoryWriteError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[green]✓[/green] Removed {removed} entries from {store.file_path}")


@cli.command("summary")
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
def summary_cmd(report_file: str) -> None:
    """Print the summary of a saved JSON report."""
    try:
        payload = json.loads(Path(report_file).read_text(encoding="utf-8"))
        summary = RunSummary(**payload["summary"])
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        raise click.ClickException(f"Not a smartreport JSON report: {exc}") from exc

    console.print(render_summary(summary))

    failures = [r for r in payload.get("results", []) if r.get("status") in ("failed", "timedOut")]
    for result in failures:
        console.print(f"\n[red]✗[/red] [bold]{result.get('test_id', '?')}[/bold]")
        if result.get("error"):
            console.print(f"  {result['error']}", markup=False)
        if result.get("ai_suggestion"):
            console.print(f"  [cyan]Suggestion:[/cyan] {result['ai_suggestion']}")


@cli.group("config")
def config_group() -> None:
    """Inspect configuration."""


@config_group.command("show")
@click.option("--root", default=".", type=click.Path(file_okay=False), help="Project root.")
def config_show(root: str) -> None:
    """Print the resolved configuration with secrets masked."""
    config = _load(root)
    data = asdict(config)
    data.pop("raw", None)
    console.print_json(json.dumps(_mask_sensitive_values(data)))

    errors = validate_config(config)
    for error in errors:
        console.print(f"[yellow]⚠[/yellow] {error}")
    if errors:
        raise SystemExit(1)
