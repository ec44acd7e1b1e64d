"""Terminal rendering with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table

from smartreport.analysis.flakiness import score_flakiness
from smartreport.analysis.performance import average_duration
from smartreport.reporters.html import format_duration

if TYPE_CHECKING:
    from smartreport.models.history import TestHistory
    from smartreport.models.summary import RunSummary

_PERFECT_RATE = 100
_GOOD_RATE = 80


def _pass_rate_color(rate: int) -> str:
    """Return a Rich color name for a given pass-rate percentage."""
    if rate >= _PERFECT_RATE:
        return "green"
    if rate >= _GOOD_RATE:
        return "yellow"
    return "red"


def summary_lines(summary: RunSummary) -> list[str]:
    """Plain-text summary, used where rich markup is unavailable."""
    return [
        f"{summary.total} tests: {summary.passed} passed, "
        f"{summary.failed + summary.timed_out} failed, {summary.skipped} skipped "
        f"({summary.pass_rate}% pass rate) in {format_duration(summary.duration_ms)}",
        f"{summary.flaky} flaky, {summary.slow} slower than usual",
    ]


def render_summary(summary: RunSummary) -> Table:
    """Build a table of the run summary counters."""
    table = Table(title="Run Summary", show_header=False)
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")

    color = _pass_rate_color(summary.pass_rate)
    table.add_row("Pass rate", f"[{color}]{summary.pass_rate}%[/{color}]")
    table.add_row("Total", str(summary.total))
    table.add_row("Passed", f"[green]{summary.passed}[/green]")
    table.add_row("Failed", f"[red]{summary.failed}[/red]")
    table.add_row("Timed out", f"[red]{summary.timed_out}[/red]")
    table.add_row("Skipped", str(summary.skipped))
    table.add_row("Interrupted", str(summary.interrupted))
    table.add_row("Flaky", f"[yellow]{summary.flaky}[/yellow]")
    table.add_row("Slow", f"[yellow]{summary.slow}[/yellow]")
    table.add_row("Duration", format_duration(summary.duration_ms))
    return table


def render_history(history: TestHistory) -> Table:
    """Build a table with the flakiness and average duration of every test."""
    table = Table(title="Test History")
    table.add_column("Test")
    table.add_column("Runs", justify="right")
    table.add_column("Failures", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    table.add_column("Avg duration", justify="right")

    for test_id in sorted(history):
        entries = history[test_id]
        flakiness = score_flakiness(entries)
        average = average_duration(entries)
        failures = sum(1 for entry in entries if not entry.passed)
        table.add_row(
            test_id,
            str(len(entries)),
            str(failures),
            f"{flakiness.score:.2f}" if flakiness.score is not None else "-",
            flakiness.indicator.label,
            format_duration(average) if average is not None else "-",
        )
    return table
