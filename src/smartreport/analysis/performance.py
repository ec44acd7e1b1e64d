"""Duration trend detection against a test's historical average."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartreport.models.test_result import PerformanceTrend, TrendCategory
from smartreport.utils.rounding import round_half_up

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smartreport.models.history import HistoryEntry

DEFAULT_PERFORMANCE_THRESHOLD = 0.2
"""Relative deviation from the average that counts as a trend."""


@dataclass(frozen=True)
class PerformanceResult:
    """Historical average duration and the resulting trend."""

    average: float | None
    """Mean historical duration in milliseconds; ``None`` without history."""

    trend: PerformanceTrend


def average_duration(entries: Sequence[HistoryEntry]) -> float | None:
    """Return the mean duration of *entries*, or ``None`` if there are none."""
    if not entries:
        return None
    return sum(entry.duration for entry in entries) / len(entries)


def classify_trend(
    current: float,
    average: float,
    threshold: float = DEFAULT_PERFORMANCE_THRESHOLD,
) -> PerformanceTrend:
    """Compare *current* against *average* and categorize the deviation.

    A zero average gives no meaningful relative deviation and is reported as
    ``STABLE``.
    """
    if average == 0:
        return PerformanceTrend(TrendCategory.STABLE)

    diff = (current - average) / average
    if diff > threshold:
        return PerformanceTrend(TrendCategory.SLOWER, round_half_up(diff * 100))
    if diff < -threshold:
        return PerformanceTrend(TrendCategory.FASTER, round_half_up(abs(diff) * 100))
    return PerformanceTrend(TrendCategory.STABLE)


def analyze_performance(
    entries: Sequence[HistoryEntry],
    current: float,
    threshold: float = DEFAULT_PERFORMANCE_THRESHOLD,
) -> PerformanceResult:
    """Compute the trend of *current* against the history of a test.

    Args:
        entries: History of the test, excluding the current run.
        current: Duration of the current run in milliseconds.
        threshold: Relative deviation that counts as slower or faster.
    """
    average = average_duration(entries)
    if average is None:
        return PerformanceResult(average=None, trend=PerformanceTrend(TrendCategory.BASELINE))
    return PerformanceResult(average=average, trend=classify_trend(current, average, threshold))
