"""History entry model persisted across runs."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

TestHistory = dict[str, list["HistoryEntry"]]
"""Mapping from test identity to its chronologically ordered entries."""


@dataclass(frozen=True)
class HistoryEntry:
    """One past execution outcome of a test."""

    passed: bool
    """Whether the test passed in that run."""

    duration: float
    """Test duration in milliseconds."""

    timestamp: str
    """ISO-8601 timestamp of the run that produced the entry."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk representation."""
        return {
            "passed": self.passed,
            "duration": self.duration,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Deserialize from the on-disk representation.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If a field has an unusable value.
            TypeError: If ``data`` is not a mapping.
        """
        passed = data["passed"]
        if not isinstance(passed, bool):
            raise ValueError(f"'passed' must be a boolean, got {passed!r}")

        duration = float(data["duration"])
        if duration < 0 or not math.isfinite(duration):
            raise ValueError(f"'duration' must be a non-negative number, got {duration!r}")

        return cls(passed=passed, duration=duration, timestamp=str(data["timestamp"]))
