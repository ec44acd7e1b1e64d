"""History-derived analytics: flakiness, performance trends, run summary."""

from smartreport.analysis.flakiness import (
    FLAKY_THRESHOLD,
    STABLE_THRESHOLD,
    FlakinessResult,
    score_flakiness,
)
from smartreport.analysis.performance import (
    DEFAULT_PERFORMANCE_THRESHOLD,
    PerformanceResult,
    analyze_performance,
)
from smartreport.analysis.summary import summarize

__all__ = [
    "DEFAULT_PERFORMANCE_THRESHOLD",
    "FLAKY_THRESHOLD",
    "STABLE_THRESHOLD",
    "FlakinessResult",
    "PerformanceResult",
    "analyze_performance",
    "score_flakiness",
    "summarize",
]
