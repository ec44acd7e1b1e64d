"""Data models for smartreport."""

from smartreport.models.history import HistoryEntry, TestHistory
from smartreport.models.summary import RunReport, RunSummary
from smartreport.models.test_result import (
    FlakinessIndicator,
    PerformanceTrend,
    TestResult,
    TestStatus,
    TrendCategory,
    make_test_id,
)

__all__ = [
    "FlakinessIndicator",
    "HistoryEntry",
    "PerformanceTrend",
    "RunReport",
    "RunSummary",
    "TestHistory",
    "TestResult",
    "TestStatus",
    "TrendCategory",
    "make_test_id",
]
