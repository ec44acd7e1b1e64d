"""Run lifecycle: history-aware enrichment of test results.

A ``SmartReporter`` is created once per test session and driven through
three phases by the host test runner::

    reporter = SmartReporter(config)
    reporter.begin()                 # load history, start the clock
    reporter.record(result)          # once per finished test
    report = reporter.end()          # annotate, summarize, write, persist
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from smartreport.analysis.flakiness import score_flakiness
from smartreport.analysis.performance import analyze_performance
from smartreport.analysis.summary import summarize
from smartreport.annotator import FailureAnnotator
from smartreport.errors import HistoryWriteError, LifecycleError, ReportWriteError
from smartreport.memory.test_history import TestHistoryStore
from smartreport.models.summary import RunReport
from smartreport.reporters.html import HTMLReporter
from smartreport.reporters.json_reporter import JSONReporter

if TYPE_CHECKING:
    from smartreport.config import SmartReportConfig
    from smartreport.errors import SmartReportError
    from smartreport.llm.engine import LLMEngine
    from smartreport.models.history import TestHistory
    from smartreport.models.test_result import TestResult

logger = logging.getLogger(__name__)


class SmartReporter:
    """Collects, enriches and persists the results of one test run."""

    def __init__(
        self,
        config: SmartReportConfig,
        *,
        llm: LLMEngine | None = None,
        history_store: TestHistoryStore | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            config: Resolved configuration.
            llm: Engine used for failure suggestions; ``None`` disables them.
            history_store: Override the store built from *config*.
        """
        self._config = config
        self._history_store = history_store or TestHistoryStore(
            config.history_path, max_runs=config.report.max_history_runs
        )
        self._annotator = FailureAnnotator(
            llm,
            timeout=config.llm.timeout,
            max_concurrency=config.llm.max_concurrency,
            max_tokens=config.llm.max_tokens,
        )
        self._history: TestHistory = {}
        self._results: list[TestResult] = []
        self._started_at: float | None = None
        self._report: RunReport | None = None

    @property
    def results(self) -> list[TestResult]:
        """Results recorded so far, in completion order."""
        return list(self._results)

    @property
    def history(self) -> TestHistory:
        """History loaded at run start (updated in place at run end)."""
        return self._history

    @property
    def report(self) -> RunReport | None:
        """The final report, available once ``end()`` has built it."""
        return self._report

    def begin(self) -> None:
        """Start the run: load history and start the wall clock.

        Raises:
            LifecycleError: If the run was already started.
        """
        if self._started_at is not None:
            raise LifecycleError("Run already started")
        self._history = self._history_store.load()
        self._started_at = time.monotonic()
        logger.debug(
            "Run started with history for %d tests from %s",
            len(self._history),
            self._history_store.file_path,
        )

    def record(self, result: TestResult) -> TestResult:
        """Enrich *result* from the history of its test and keep it.

        Only outcomes from previous runs are considered; the current run is
        added to the history at ``end()``.

        Raises:
            LifecycleError: If the run is not in progress.
        """
        self._require_running()

        entries = self._history.get(result.test_id, [])
        flakiness = score_flakiness(entries)
        performance = analyze_performance(
            entries, result.duration, self._config.report.performance_threshold
        )

        result.flakiness_score = flakiness.score
        result.flakiness_indicator = flakiness.indicator
        result.average_duration = performance.average
        result.performance_trend = performance.trend

        self._results.append(result)
        return result

    def end(self) -> RunReport:
        """Finish the run synchronously. See :meth:`end_async`."""
        return asyncio.run(self.end_async())

    async def end_async(self) -> RunReport:
        """Finish the run.

        Annotates failures, computes the summary, writes the reports and
        persists the updated history. Both writes are attempted even if the
        first one fails.

        Returns:
            The final report.

        Raises:
            LifecycleError: If the run is not in progress.
            ReportWriteError: If a report could not be written.
            HistoryWriteError: If the history could not be persisted.
        """
        started_at = self._require_running()
        duration_ms = (time.monotonic() - started_at) * 1000
        self._started_at = None

        await self._annotator.annotate(self._results)

        results = list(self._results)
        self._report = RunReport(summary=summarize(results, duration_ms), results=results)

        errors: list[SmartReportError] = []
        try:
            self._write_reports(self._report)
        except ReportWriteError as exc:
            errors.append(exc)

        self._history_store.record_run(
            self._history, results, timestamp=datetime.now(UTC).isoformat()
        )
        try:
            self._history_store.save(self._history)
        except HistoryWriteError as exc:
            errors.append(exc)

        if errors:
            for extra in errors[1:]:
                logger.error("%s", extra)
            raise errors[0]
        return self._report

    def _write_reports(self, report: RunReport) -> None:
        output_path = self._config.output_path
        try:
            HTMLReporter().generate(output_path, report)
            json_path = self._config.json_output_path
            if json_path is not None:
                JSONReporter().generate(json_path, report)
        except OSError as exc:
            logger.error("Failed to write report: %s", exc)
            raise ReportWriteError(f"Could not write report: {exc}") from exc

    def _require_running(self) -> float:
        if self._started_at is None:
            if self._report is not None:
                raise LifecycleError("Run already finished")
            raise LifecycleError("Run not started; call begin() first")
        return self._started_at
