"""Run-level aggregate models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from smartreport.models.test_result import TestResult


@dataclass(frozen=True)
class RunSummary:
    """Aggregate counters over one run's enriched results."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    timed_out: int = 0
    interrupted: int = 0
    flaky: int = 0
    """Results whose flakiness score reaches the flaky threshold."""

    slow: int = 0
    """Results trending slower than their historical average."""

    pass_rate: int = 0
    """Passed share in whole percent; 0 for an empty run."""

    duration_ms: float = 0.0
    """Wall-clock time between run start and run end."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize for reports."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "timed_out": self.timed_out,
            "interrupted": self.interrupted,
            "flaky": self.flaky,
            "slow": self.slow,
            "pass_rate": self.pass_rate,
            "duration_ms": self.duration_ms,
        }


@dataclass
class RunReport:
    """Complete snapshot of a run handed to the presentation layer."""

    summary: RunSummary
    results: list[TestResult] = field(default_factory=list)
    generated_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        """Serialize the summary and every enriched result."""
        return {
            "generated_at": self.generated_at,
            "summary": self.summary.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }
