"""Tests for the pytest plugin."""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock, patch

import pytest

from smartreport.engine import SmartReporter
from smartreport.errors import HistoryWriteError
from smartreport.models.test_result import TestStatus
from smartreport.plugin import SmartReportPlugin

if TYPE_CHECKING:
    from smartreport.config import SmartReportConfig

# ── Helpers ──────────────────────────────────────────────────────


def _report(
    when: str,
    outcome: str = "passed",
    *,
    nodeid: str = "tests/test_app.py::test_one",
    location: tuple[str, int | None, str] = ("tests/test_app.py", 3, "test_one"),
    longrepr: Any = None,
    duration: float = 0.01,
) -> pytest.TestReport:
    return pytest.TestReport(
        nodeid=nodeid,
        location=location,
        keywords={},
        outcome=outcome,  # type: ignore[arg-type]
        longrepr=longrepr,
        when=when,  # type: ignore[arg-type]
        duration=duration,
    )


def _run(plugin: SmartReportPlugin, *reports: pytest.TestReport) -> SimpleNamespace:
    session = SimpleNamespace(exitstatus=pytest.ExitCode.OK)
    plugin.pytest_sessionstart(session)  # type: ignore[arg-type]
    for report in reports:
        plugin.pytest_runtest_logreport(report)
    plugin.pytest_sessionfinish(session, 0)  # type: ignore[arg-type]
    return session


@pytest.fixture
def plugin(smart_config: SmartReportConfig) -> SmartReportPlugin:
    return SmartReportPlugin(SmartReporter(smart_config), smart_config)


def _results(plugin: SmartReportPlugin) -> dict[str, Any]:
    report = plugin.reporter.report
    assert report is not None
    return {result.title: result for result in report.results}


# ── Status mapping ───────────────────────────────────────────────


def test_passed_test_sums_phase_durations(plugin: SmartReportPlugin) -> None:
    _run(
        plugin,
        _report("setup", duration=0.1),
        _report("call", duration=0.25),
        _report("teardown", duration=0.05),
    )

    result = _results(plugin)["test_one"]
    assert result.status is TestStatus.PASSED
    assert result.duration == pytest.approx(400.0)
    assert result.test_id == "tests/test_app.py::test_one"
    assert result.file == "tests/test_app.py"
    assert result.error is None


def test_failed_call_captures_error(plugin: SmartReportPlugin) -> None:
    longrepr = "def test_one():\n>       assert 1 == 2\nE       assert 1 == 2"
    _run(
        plugin,
        _report("setup"),
        _report("call", "failed", longrepr=longrepr),
        _report("teardown"),
    )

    result = _results(plugin)["test_one"]
    assert result.status is TestStatus.FAILED
    assert result.error == "E       assert 1 == 2"
    assert result.error_stack == longrepr


def test_setup_error_counts_as_failed(plugin: SmartReportPlugin) -> None:
    _run(
        plugin,
        _report("setup", "failed", longrepr="fixture 'db' not found"),
        _report("teardown"),
    )
    assert _results(plugin)["test_one"].status is TestStatus.FAILED


def test_first_failure_wins(plugin: SmartReportPlugin) -> None:
    _run(
        plugin,
        _report("setup"),
        _report("call", "failed", longrepr="first problem"),
        _report("teardown", "failed", longrepr="teardown problem"),
    )
    assert _results(plugin)["test_one"].error == "first problem"


def test_timeout_failure_is_timed_out(plugin: SmartReportPlugin) -> None:
    longrepr = "+++++++ Timeout +++++++\n...\nE   Failed: Timeout >1.0s"
    _run(
        plugin,
        _report("setup"),
        _report("call", "failed", longrepr=longrepr),
        _report("teardown"),
    )

    result = _results(plugin)["test_one"]
    assert result.status is TestStatus.TIMED_OUT
    assert result.error == "E   Failed: Timeout >1.0s"


def test_skipped_test(plugin: SmartReportPlugin) -> None:
    _run(
        plugin,
        _report("setup", "skipped", longrepr=("tests/test_app.py", 3, "Skipped: not today")),
        _report("teardown"),
    )

    result = _results(plugin)["test_one"]
    assert result.status is TestStatus.SKIPPED
    assert result.error is None


def test_rerun_reports_count_as_retries(plugin: SmartReportPlugin) -> None:
    _run(
        plugin,
        _report("setup"),
        _report("call", "rerun", longrepr="flaked", duration=5.0),
        _report("setup"),
        _report("call", "rerun", longrepr="flaked again", duration=5.0),
        _report("setup", duration=0.0),
        _report("call", duration=0.2),
        _report("teardown", duration=0.0),
    )

    result = _results(plugin)["test_one"]
    assert result.retry == 2
    assert result.status is TestStatus.PASSED
    assert result.duration == pytest.approx(200.0)


def test_unfinished_tests_are_interrupted(plugin: SmartReportPlugin) -> None:
    _run(
        plugin,
        _report("setup"),
        _report("call"),
        _report("teardown"),
        _report(
            "setup",
            nodeid="tests/test_app.py::test_two",
            location=("tests/test_app.py", 9, "test_two"),
        ),
    )

    results = _results(plugin)
    assert results["test_one"].status is TestStatus.PASSED
    assert results["test_two"].status is TestStatus.INTERRUPTED
    assert plugin.reporter.report is not None
    assert plugin.reporter.report.summary.interrupted == 1


def test_windows_paths_are_normalized(plugin: SmartReportPlugin) -> None:
    location = ("tests\\unit\\test_app.py", 1, "test_one")
    _run(
        plugin,
        _report("setup", location=location),
        _report("call", location=location),
        _report("teardown", location=location),
    )
    assert _results(plugin)["test_one"].test_id == "tests/unit/test_app.py::test_one"


# ── Session end ──────────────────────────────────────────────────


def test_write_error_sets_internal_error(plugin: SmartReportPlugin) -> None:
    with patch(
        "smartreport.engine.TestHistoryStore.save", side_effect=HistoryWriteError("disk full")
    ):
        session = _run(plugin, _report("setup"), _report("call"), _report("teardown"))

    assert session.exitstatus == pytest.ExitCode.INTERNAL_ERROR

    terminal = MagicMock()
    plugin.pytest_terminal_summary(terminal)
    lines = [call.args[0] for call in terminal.write_line.call_args_list]
    assert any("smart report failed: disk full" in line for line in lines)


def test_terminal_summary_points_to_report(
    plugin: SmartReportPlugin, smart_config: SmartReportConfig
) -> None:
    _run(plugin, _report("setup"), _report("call"), _report("teardown"))

    terminal = MagicMock()
    plugin.pytest_terminal_summary(terminal)

    terminal.write_sep.assert_called_once_with("-", "smart report")
    lines = [call.args[0] for call in terminal.write_line.call_args_list]
    assert lines[0].startswith("1 tests: 1 passed")
    assert lines[-1] == f"Smart Report: {smart_config.output_path}"


# ── End-to-end via pytester ──────────────────────────────────────

_SAMPLE_TESTS = """
import pytest

def test_pass():
    assert True

def test_fail():
    assert 1 == 2

@pytest.mark.skip(reason="not today")
def test_skip():
    pass

@pytest.mark.xfail(reason="known bug")
def test_xfail():
    assert False

@pytest.mark.parametrize("n", [1, 2])
def test_param(n):
    assert n
"""


def _load_json(path: Any) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def test_plugin_inactive_by_default(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_sample=_SAMPLE_TESTS)

    result = pytester.runpytest("-p", "smartreport.plugin")

    result.assert_outcomes(passed=3, failed=1, skipped=1, xfailed=1)
    assert not (pytester.path / "smart-report.html").exists()
    assert not (pytester.path / "test-history.json").exists()


def test_plugin_writes_report_and_history(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_sample=_SAMPLE_TESTS)

    result = pytester.runpytest(
        "-p",
        "smartreport.plugin",
        "--smart-report",
        "--smart-report-no-ai",
        "--smart-report-json=report.json",
    )

    result.assert_outcomes(passed=3, failed=1, skipped=1, xfailed=1)
    result.stdout.fnmatch_lines(
        [
            "*smart report*",
            "6 tests: 3 passed, 1 failed, 2 skipped (50% pass rate)*",
            "Smart Report: *smart-report.html",
        ]
    )
    assert (pytester.path / "smart-report.html").is_file()

    payload = _load_json(pytester.path / "report.json")
    statuses = {r["title"]: r["status"] for r in payload["results"]}
    assert statuses == {
        "test_pass": "passed",
        "test_fail": "failed",
        "test_skip": "skipped",
        "test_xfail": "skipped",
        "test_param[1]": "passed",
        "test_param[2]": "passed",
    }
    assert all(r["flakiness_indicator"] == "new" for r in payload["results"])
    assert all(r["performance_trend"] == "baseline" for r in payload["results"])

    history = _load_json(pytester.path / "test-history.json")
    assert history["test_sample.py::test_fail"][0]["passed"] is False
    assert history["test_sample.py::test_param[2]"][0]["passed"] is True


def test_second_run_uses_history(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_sample=_SAMPLE_TESTS)
    args = ("-p", "smartreport.plugin", "--smart-report", "--smart-report-no-ai")

    pytester.runpytest(*args)
    pytester.runpytest(*args, "--smart-report-json=report.json")

    payload = _load_json(pytester.path / "report.json")
    by_title = {r["title"]: r for r in payload["results"]}
    assert by_title["test_fail"]["flakiness_score"] == 1.0
    assert by_title["test_fail"]["flakiness_indicator"] == "flaky"
    assert by_title["test_pass"]["flakiness_indicator"] == "stable"
    assert "average_duration" in by_title["test_pass"]
    assert payload["summary"]["flaky"] == 1

    history = _load_json(pytester.path / "test-history.json")
    assert len(history["test_sample.py::test_pass"]) == 2


def test_max_runs_option_bounds_history(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_one="def test_ok():\n    pass\n")
    args = (
        "-p",
        "smartreport.plugin",
        "--smart-report",
        "--smart-report-no-ai",
        "--smart-report-max-runs=2",
    )

    for _ in range(4):
        pytester.runpytest(*args)

    history = _load_json(pytester.path / "test-history.json")
    assert len(history["test_one.py::test_ok"]) == 2


def test_enabled_from_config_file(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_one="def test_ok():\n    pass\n")
    pytester.makefile(
        ".yml",
        **{
            ".smartreport": (
                "report:\n  enabled: true\n  output_file: out/report.html\n"
                "llm:\n  mode: disabled\n"
            )
        },
    )

    result = pytester.runpytest("-p", "smartreport.plugin")

    result.assert_outcomes(passed=1)
    assert (pytester.path / "out" / "report.html").is_file()


def test_invalid_config_is_usage_error(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_one="def test_ok():\n    pass\n")

    result = pytester.runpytest(
        "-p", "smartreport.plugin", "--smart-report", "--smart-report-max-runs=0"
    )

    assert result.ret == pytest.ExitCode.USAGE_ERROR
    result.stderr.fnmatch_lines(["*max_history_runs must be at least 1*"])


def test_non_numeric_env_setting_is_usage_error(
    pytester: pytest.Pytester, monkeypatch: pytest.MonkeyPatch
) -> None:
    pytester.makepyfile(test_one="def test_ok():\n    pass\n")
    monkeypatch.setenv("SMARTREPORT_MAX_HISTORY_RUNS", "abc")

    result = pytester.runpytest("-p", "smartreport.plugin", "--smart-report")

    assert result.ret == pytest.ExitCode.USAGE_ERROR
    result.stderr.fnmatch_lines(["*max_history_runs must be an integer*"])


def test_history_write_failure_is_internal_error(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(test_one="def test_ok():\n    pass\n")
    (pytester.path / "history-dir").mkdir()

    result = pytester.runpytest(
        "-p",
        "smartreport.plugin",
        "--smart-report",
        "--smart-report-no-ai",
        "--smart-report-history=history-dir",
    )

    assert result.ret == pytest.ExitCode.INTERNAL_ERROR
    result.stdout.fnmatch_lines(["*smart report failed: Could not write history*"])
    assert (pytester.path / "smart-report.html").is_file()
