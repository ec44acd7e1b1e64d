"""Run-level aggregation over enriched results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smartreport.analysis.flakiness import is_flaky
from smartreport.models.summary import RunSummary
from smartreport.models.test_result import TestStatus, TrendCategory
from smartreport.utils.rounding import round_half_up

if TYPE_CHECKING:
    from collections.abc import Iterable

    from smartreport.models.test_result import TestResult


def summarize(results: Iterable[TestResult], duration_ms: float) -> RunSummary:
    """Fold the results of a run into summary counters.

    Args:
        results: Enriched results of the current run.
        duration_ms: Wall-clock duration of the run. Tests may run
            concurrently, so this is not the sum of test durations.
    """
    counts = dict.fromkeys(TestStatus, 0)
    flaky = 0
    slow = 0

    for result in results:
        counts[result.status] += 1
        if is_flaky(result.flakiness_score):
            flaky += 1
        trend = result.performance_trend
        if trend is not None and trend.category is TrendCategory.SLOWER:
            slow += 1

    total = sum(counts.values())
    passed = counts[TestStatus.PASSED]
    pass_rate = round_half_up(passed / total * 100) if total else 0

    return RunSummary(
        total=total,
        passed=passed,
        failed=counts[TestStatus.FAILED],
        skipped=counts[TestStatus.SKIPPED],
        timed_out=counts[TestStatus.TIMED_OUT],
        interrupted=counts[TestStatus.INTERRUPTED],
        flaky=flaky,
        slow=slow,
        pass_rate=pass_rate,
        duration_ms=duration_ms,
    )
