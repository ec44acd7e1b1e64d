"""Flakiness scoring from a test's history window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from smartreport.models.test_result import FlakinessIndicator

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smartreport.models.history import HistoryEntry

STABLE_THRESHOLD = 0.1
"""Scores below this are stable."""

FLAKY_THRESHOLD = 0.3
"""Scores at or above this are flaky."""


@dataclass(frozen=True)
class FlakinessResult:
    """Flakiness score and its category."""

    score: float | None
    """Fraction of failing runs; ``None`` when there is no history."""

    indicator: FlakinessIndicator


def indicator_for_score(score: float) -> FlakinessIndicator:
    """Map a flakiness score in ``[0, 1]`` to its category."""
    if score < STABLE_THRESHOLD:
        return FlakinessIndicator.STABLE
    if score < FLAKY_THRESHOLD:
        return FlakinessIndicator.UNSTABLE
    return FlakinessIndicator.FLAKY


def is_flaky(score: float | None) -> bool:
    """Return ``True`` if *score* is defined and reaches the flaky threshold."""
    return score is not None and score >= FLAKY_THRESHOLD


def score_flakiness(entries: Sequence[HistoryEntry]) -> FlakinessResult:
    """Score a test's instability from its previous outcomes.

    Args:
        entries: History of the test, excluding the current run.

    Returns:
        ``NEW`` with no score for an empty history, otherwise the share of
        failing entries and its category.
    """
    if not entries:
        return FlakinessResult(score=None, indicator=FlakinessIndicator.NEW)

    failures = sum(1 for entry in entries if not entry.passed)
    score = failures / len(entries)
    return FlakinessResult(score=score, indicator=indicator_for_score(score))
