"""pytest plugin wiring test reports into the ``SmartReporter`` lifecycle.

Enable with ``pytest --smart-report`` or ``report.enabled: true`` in
``.smartreport.yml``. Under pytest-xdist only the controller process records
results; workers forward their reports to it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import pytest
import yaml

from smartreport.config import load_config, validate_config
from smartreport.engine import SmartReporter
from smartreport.errors import ConfigError, SmartReportError
from smartreport.llm.engine import LLMError
from smartreport.llm.factory import create_engine
from smartreport.models.test_result import TestResult, TestStatus, make_test_id
from smartreport.reporters.terminal import summary_lines

if TYPE_CHECKING:
    from smartreport.config import SmartReportConfig
    from smartreport.llm.engine import LLMEngine
    from smartreport.models.summary import RunReport

logger = logging.getLogger(__name__)

PLUGIN_NAME = "smartreport-session"

_TIMEOUT_RE = re.compile(r"^(?:E\s+)?Failed: Timeout >|\+{3,} Timeout \+{3,}", re.MULTILINE)


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("smartreport", "history-aware test reporting")
    group.addoption(
        "--smart-report",
        action="store_true",
        default=False,
        help="Write a smart report with flakiness and performance trends.",
    )
    group.addoption(
        "--smart-report-output",
        default=None,
        metavar="PATH",
        help="HTML report path (default: smart-report.html).",
    )
    group.addoption(
        "--smart-report-json",
        default=None,
        metavar="PATH",
        help="Also write the report snapshot as JSON to PATH.",
    )
    group.addoption(
        "--smart-report-history",
        default=None,
        metavar="PATH",
        help="History snapshot path (default: test-history.json).",
    )
    group.addoption(
        "--smart-report-max-runs",
        type=int,
        default=None,
        metavar="N",
        help="Number of past runs kept per test (default: 10).",
    )
    group.addoption(
        "--smart-report-threshold",
        type=float,
        default=None,
        metavar="RATIO",
        help="Relative duration change flagged as slower/faster (default: 0.2).",
    )
    group.addoption(
        "--smart-report-no-ai",
        action="store_true",
        default=False,
        help="Do not request AI suggestions for failures.",
    )


def pytest_configure(config: pytest.Config) -> None:
    if hasattr(config, "workerinput"):
        return

    try:
        smart_config = load_config(config.rootpath)
    except yaml.YAMLError as exc:
        raise pytest.UsageError(f"Invalid .smartreport.yml: {exc}") from exc
    except ConfigError as exc:
        raise pytest.UsageError(f"Invalid smartreport configuration: {exc}") from exc

    if not (config.getoption("smart_report") or smart_config.report.enabled):
        return

    _apply_cli_overrides(config, smart_config)
    errors = validate_config(smart_config)
    if errors:
        raise pytest.UsageError("Invalid smartreport configuration:\n  " + "\n  ".join(errors))

    llm = None if config.getoption("smart_report_no_ai") else _create_llm(smart_config)
    reporter = SmartReporter(smart_config, llm=llm)
    config.pluginmanager.register(SmartReportPlugin(reporter, smart_config), PLUGIN_NAME)


def _apply_cli_overrides(config: pytest.Config, smart_config: SmartReportConfig) -> None:
    report = smart_config.report
    output = config.getoption("smart_report_output")
    if output:
        report.output_file = output
    json_output = config.getoption("smart_report_json")
    if json_output:
        report.json_output_file = json_output
    history = config.getoption("smart_report_history")
    if history:
        report.history_file = history
    max_runs = config.getoption("smart_report_max_runs")
    if max_runs is not None:
        report.max_history_runs = max_runs
    threshold = config.getoption("smart_report_threshold")
    if threshold is not None:
        report.performance_threshold = threshold


def _create_llm(smart_config: SmartReportConfig) -> LLMEngine | None:
    try:
        return create_engine(smart_config.llm)
    except LLMError as exc:
        logger.warning("AI failure analysis disabled: %s", exc)
        return None


@dataclass
class _PendingTest:
    """Phase reports of one test collected until its teardown arrives."""

    location: tuple[str, int | None, str]
    duration: float = 0.0
    retries: int = 0
    status: TestStatus = TestStatus.PASSED
    error: str | None = None
    error_stack: str | None = None

    def reset_attempt(self) -> None:
        self.duration = 0.0
        self.status = TestStatus.PASSED
        self.error = None
        self.error_stack = None

    def add(self, report: pytest.TestReport) -> None:
        self.duration += report.duration

        if report.failed:
            if self.status.is_failure:
                return
            text = report.longreprtext
            self.status = TestStatus.TIMED_OUT if _TIMEOUT_RE.search(text) else TestStatus.FAILED
            self.error = _error_message(report)
            self.error_stack = text or None
        elif report.skipped and self.status is TestStatus.PASSED:
            self.status = TestStatus.SKIPPED


def _error_message(report: pytest.TestReport) -> str:
    crash = getattr(report.longrepr, "reprcrash", None)
    message = getattr(crash, "message", None)
    if message:
        return str(message).splitlines()[0]
    text = report.longreprtext.strip()
    return text.splitlines()[-1] if text else "Unknown error"


class SmartReportPlugin:
    """Session-scoped plugin instance driving one ``SmartReporter``."""

    def __init__(self, reporter: SmartReporter, smart_config: SmartReportConfig) -> None:
        self._reporter = reporter
        self._config = smart_config
        self._pending: dict[str, _PendingTest] = {}
        self._report: RunReport | None = None
        self._error: SmartReportError | None = None

    @property
    def reporter(self) -> SmartReporter:
        return self._reporter

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        self._reporter.begin()

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        pending = self._pending.get(report.nodeid)
        if pending is None:
            pending = _PendingTest(location=report.location)
            self._pending[report.nodeid] = pending

        if report.outcome == "rerun":
            pending.retries += 1
            pending.reset_attempt()
            return

        pending.add(report)
        if report.when == "teardown":
            del self._pending[report.nodeid]
            self._record(pending, pending.status)

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        # Tests still missing a teardown report were cut short by an interrupt
        for pending in self._pending.values():
            self._record(pending, TestStatus.INTERRUPTED)
        self._pending.clear()

        try:
            self._report = self._reporter.end()
        except SmartReportError as exc:
            self._error = exc
            self._report = self._reporter.report
            session.exitstatus = pytest.ExitCode.INTERNAL_ERROR

    def pytest_terminal_summary(self, terminalreporter: Any) -> None:
        terminalreporter.write_sep("-", "smart report")
        if self._report is not None:
            for line in summary_lines(self._report.summary):
                terminalreporter.write_line(line)
        if self._error is not None:
            terminalreporter.write_line(f"smart report failed: {self._error}", red=True)
        else:
            terminalreporter.write_line(f"Smart Report: {self._config.output_path}")

    def _record(self, pending: _PendingTest, status: TestStatus) -> None:
        file, _lineno, title = pending.location
        file = file.replace("\\", "/")
        self._reporter.record(
            TestResult(
                test_id=make_test_id(file, title),
                title=title,
                file=file,
                status=status,
                duration=pending.duration * 1000,
                retry=pending.retries,
                error=pending.error if status.is_failure else None,
                error_stack=pending.error_stack if status.is_failure else None,
            )
        )
