"""Shared fixtures for smartreport tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from smartreport.config import load_config
from smartreport.models.history import HistoryEntry
from smartreport.models.test_result import TestResult, TestStatus, make_test_id

if TYPE_CHECKING:
    from pathlib import Path

    from smartreport.config import SmartReportConfig

pytest_plugins = ["pytester"]

_CREDENTIAL_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "SMARTREPORT_LLM_MODE",
    "SMARTREPORT_LLM_PROVIDER",
    "SMARTREPORT_LLM_MODEL",
    "SMARTREPORT_LLM_API_KEY",
    "SMARTREPORT_LLM_BASE_URL",
    "SMARTREPORT_OUTPUT_FILE",
    "SMARTREPORT_JSON_OUTPUT_FILE",
    "SMARTREPORT_HISTORY_FILE",
    "SMARTREPORT_MAX_HISTORY_RUNS",
    "SMARTREPORT_PERFORMANCE_THRESHOLD",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials and overrides from the host environment out of tests."""
    for name in _CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ── Builders ─────────────────────────────────────────────────────


def _make_result(
    title: str = "test_example",
    *,
    file: str = "tests/test_app.py",
    status: TestStatus = TestStatus.PASSED,
    duration: float = 100.0,
    **kwargs: Any,
) -> TestResult:
    """Build a raw ``TestResult`` as the pytest plugin would."""
    return TestResult(
        test_id=make_test_id(file, title),
        title=title,
        file=file,
        status=status,
        duration=duration,
        **kwargs,
    )


def _make_entries(*outcomes: tuple[bool, float]) -> list[HistoryEntry]:
    """Build history entries from ``(passed, duration)`` pairs, oldest first."""
    return [
        HistoryEntry(
            passed=passed,
            duration=duration,
            timestamp=f"2026-10-{day:02d}T09:00:00+00:00",
        )
        for day, (passed, duration) in enumerate(outcomes, start=1)
    ]


@pytest.fixture
def make_result() -> Any:
    """Factory for raw results."""
    return _make_result


@pytest.fixture
def make_entries() -> Any:
    """Factory for history windows."""
    return _make_entries


@pytest.fixture
def smart_config(tmp_path: Path) -> SmartReportConfig:
    """Default configuration rooted in a temporary project."""
    config = load_config(tmp_path)
    config.llm.mode = "disabled"
    return config
