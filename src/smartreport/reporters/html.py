"""HTML reporter — a self-contained report page.

The page embeds the full run snapshot as JSON and renders summary cards,
filter buttons and one card per test. It only displays values computed by
the engine.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import TYPE_CHECKING

from smartreport.analysis.flakiness import is_flaky
from smartreport.models.test_result import FlakinessIndicator, TestStatus, TrendCategory
from smartreport.reporters.json_reporter import build_payload

if TYPE_CHECKING:
    from pathlib import Path

    from smartreport.models.summary import RunReport, RunSummary
    from smartreport.models.test_result import TestResult

logger = logging.getLogger(__name__)

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60_000

# Test health thresholds
_PASS_RATE_THRESHOLD_SUCCESS = 100
_PASS_RATE_THRESHOLD_WARNING = 80

_BADGE_CLASSES = {
    FlakinessIndicator.NEW: "new",
    FlakinessIndicator.STABLE: "stable",
    FlakinessIndicator.UNSTABLE: "unstable",
    FlakinessIndicator.FLAKY: "flaky",
}

_NON_ID_CHARS = re.compile(r"[^a-zA-Z0-9]")

_STYLE = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body {
  font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  background: #0d1117; color: #c9d1d9; padding: 2rem; line-height: 1.6;
}
.container { max-width: 1200px; margin: 0 auto; }
h1 { font-size: 2rem; color: #58a6ff; }
.subtitle { color: #8b949e; margin-bottom: 2rem; }
.grid {
  display: grid; grid-template-columns: repeat(auto-fit, minmax(140px, 1fr));
  gap: 1rem; margin-bottom: 2rem;
}
.stat { background: #161b22; border: 1px solid #30363d; border-radius: 6px; padding: 1rem; }
.stat-label { color: #8b949e; font-size: 0.875rem; }
.stat-value { font-size: 1.5rem; font-weight: 600; color: #58a6ff; }
.stat-value.success { color: #3fb950; }
.stat-value.warning { color: #d29922; }
.stat-value.error { color: #f85149; }
.filters { margin-bottom: 1rem; }
.filter-btn {
  background: #21262d; color: #c9d1d9; border: 1px solid #30363d;
  border-radius: 6px; padding: 0.4rem 0.9rem; cursor: pointer; margin-right: 0.5rem;
}
.filter-btn.active { background: #1f6feb; border-color: #1f6feb; color: #fff; }
.test-card {
  background: #161b22; border: 1px solid #30363d; border-radius: 6px; margin-bottom: 0.5rem;
}
.test-card-header {
  display: flex; justify-content: space-between; align-items: center; padding: 0.75rem 1rem;
}
.test-card-header.expandable { cursor: pointer; }
.status-indicator { width: 10px; height: 10px; border-radius: 50%; margin-right: 0.75rem; }
.status-indicator.passed { background: #3fb950; }
.status-indicator.failed { background: #f85149; }
.status-indicator.skipped { background: #8b949e; }
.test-info { display: flex; align-items: center; }
.test-file { color: #8b949e; font-size: 0.8rem; }
.test-meta > * { margin-left: 0.75rem; font-size: 0.875rem; }
.badge { padding: 0.15rem 0.6rem; border-radius: 12px; }
.badge.new { background: #30363d; }
.badge.stable { background: #1a4d2e; color: #56d364; }
.badge.unstable { background: #4d3b1a; color: #e3b341; }
.badge.flaky { background: #4d1a1a; color: #ff7b72; }
.trend.slower { color: #f85149; }
.trend.faster { color: #3fb950; }
.trend.stable, .trend.baseline { color: #8b949e; }
.test-details { display: none; padding: 0 1rem 1rem 1rem; }
.test-card.open .test-details { display: block; }
.detail-label { color: #8b949e; font-size: 0.8rem; margin-top: 0.75rem; }
.error-box, .stack-box, .ai-box {
  background: #0d1117; border: 1px solid #30363d; border-radius: 6px;
  padding: 0.75rem; white-space: pre-wrap; font-family: monospace; font-size: 0.8rem;
}
.error-box { color: #ff7b72; }
.ai-box { border-color: #1f6feb; font-family: inherit; }
"""

_SCRIPT = """
function filterTests(filter) {
  document.querySelectorAll('.filter-btn').forEach(function (btn) {
    btn.classList.toggle('active', btn.dataset.filter === filter);
  });
  document.querySelectorAll('.test-card').forEach(function (card) {
    var show = filter === 'all'
      || (filter === 'flaky' && card.dataset.flaky === 'true')
      || (filter === 'slow' && card.dataset.slow === 'true')
      || card.dataset.status === filter
      || (filter === 'failed' && card.dataset.status === 'timedOut');
    card.style.display = show ? '' : 'none';
  });
}
function toggleDetails(id) {
  document.getElementById('card-' + id).classList.toggle('open');
}
"""


class HTMLReporter:
    """Render a ``RunReport`` into a single self-contained HTML file."""

    def generate(self, output_path: Path, report: RunReport) -> Path:
        """Write the HTML report.

        Returns:
            The path to the generated file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(report), encoding="utf-8")
        logger.info("HTML report written to %s", output_path)
        return output_path

    def render(self, report: RunReport) -> str:
        """Return the complete HTML document for *report*."""
        summary = report.summary
        cards = "\n".join(
            _render_test_card(index, result) for index, result in enumerate(report.results)
        )
        if not cards:
            cards = '<p class="subtitle">No tests were recorded in this run.</p>'

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Smart Test Report</title>
  <style>{_STYLE}</style>
</head>
<body>
  <div class="container">
    <h1>Smart Test Report</h1>
    <p class="subtitle">Generated {html.escape(report.generated_at)}</p>
    {_render_summary(summary)}
    {_render_filters(summary)}
    <div id="tests">
{cards}
    </div>
  </div>
  <script id="report-data" type="application/json">{_embed_json(report)}</script>
  <script>{_SCRIPT}</script>
</body>
</html>"""


def format_duration(ms: float) -> str:
    """Format milliseconds as ``ms``, seconds or minutes."""
    if ms < _MS_PER_SECOND:
        return f"{round(ms)}ms"
    if ms < _MS_PER_MINUTE:
        return f"{ms / _MS_PER_SECOND:.1f}s"
    return f"{ms / _MS_PER_MINUTE:.1f}m"


def _embed_json(report: RunReport) -> str:
    # "<" is escaped so that a "</script>" inside error text cannot end the block
    return json.dumps(build_payload(report), ensure_ascii=False).replace("<", "\\u003c")


def _pass_rate_class(pass_rate: int) -> str:
    if pass_rate >= _PASS_RATE_THRESHOLD_SUCCESS:
        return "success"
    if pass_rate >= _PASS_RATE_THRESHOLD_WARNING:
        return "warning"
    return "error"


def _render_summary(summary: RunSummary) -> str:
    failed = summary.failed + summary.timed_out
    stats = [
        ("Pass Rate", f"{summary.pass_rate}%", _pass_rate_class(summary.pass_rate)),
        ("Passed", str(summary.passed), "success"),
        ("Failed", str(failed), "error" if failed else ""),
        ("Skipped", str(summary.skipped), ""),
        ("Flaky", str(summary.flaky), "warning" if summary.flaky else ""),
        ("Slow", str(summary.slow), "warning" if summary.slow else ""),
        ("Duration", format_duration(summary.duration_ms), ""),
    ]
    items = "".join(
        f'<div class="stat"><div class="stat-label">{label}</div>'
        f'<div class="stat-value {css}">{value}</div></div>'
        for label, value, css in stats
    )
    return f'<div class="grid">{items}</div>'


def _render_filters(summary: RunSummary) -> str:
    filters = [
        ("all", "All", summary.total),
        ("passed", "Passed", summary.passed),
        ("failed", "Failed", summary.failed + summary.timed_out),
        ("skipped", "Skipped", summary.skipped),
        ("flaky", "Flaky", summary.flaky),
        ("slow", "Slow", summary.slow),
    ]
    buttons = "".join(
        f'<button class="filter-btn{" active" if key == "all" else ""}" data-filter="{key}" '
        f"onclick=\"filterTests('{key}')\">{label} ({count})</button>"
        for key, label, count in filters
    )
    return f'<div class="filters">{buttons}</div>'


def _status_class(status: TestStatus) -> str:
    if status is TestStatus.PASSED:
        return "passed"
    if status is TestStatus.SKIPPED:
        return "skipped"
    return "failed"


def _render_test_card(index: int, result: TestResult) -> str:
    # Sanitizing can merge distinct identities, so the position keeps ids unique
    card_id = f"{_NON_ID_CHARS.sub('_', result.test_id)}-{index}"
    trend = result.performance_trend
    is_slow = trend is not None and trend.category is TrendCategory.SLOWER
    details = _render_details(result)
    header_attrs = (
        f' class="test-card-header expandable" onclick="toggleDetails(\'{card_id}\')"'
        if details
        else ' class="test-card-header"'
    )

    meta = [f'<span class="test-duration">{format_duration(result.duration)}</span>']
    if result.flakiness_indicator is not None:
        badge = _BADGE_CLASSES[result.flakiness_indicator]
        label = result.flakiness_indicator.label.split(" ", 1)[-1]
        meta.append(f'<span class="badge {badge}">{label}</span>')
    if trend is not None:
        meta.append(f'<span class="trend {trend.category.value}">{trend.label}</span>')

    return f"""      <div id="card-{card_id}" class="test-card" data-status="{result.status.value}"
           data-flaky="{str(is_flaky(result.flakiness_score)).lower()}"
           data-slow="{str(is_slow).lower()}">
        <div{header_attrs}>
          <div class="test-info">
            <div class="status-indicator {_status_class(result.status)}"></div>
            <div>
              <div class="test-title">{html.escape(result.title)}</div>
              <div class="test-file">{html.escape(result.file)}</div>
            </div>
          </div>
          <div class="test-meta">{"".join(meta)}</div>
        </div>
        {details}
      </div>"""


def _render_details(result: TestResult) -> str:
    parts: list[str] = []
    if result.error:
        parts.append('<div class="detail-label">Error</div>')
        parts.append(f'<div class="error-box">{html.escape(result.error)}</div>')
    if result.error_stack:
        parts.append('<div class="detail-label">Stack trace</div>')
        parts.append(f'<div class="stack-box">{html.escape(result.error_stack)}</div>')
    if result.ai_suggestion:
        parts.append('<div class="detail-label">AI suggestion</div>')
        parts.append(f'<div class="ai-box">{html.escape(result.ai_suggestion)}</div>')
    if result.average_duration is not None:
        parts.append(
            '<div class="detail-label">Duration</div>'
            f"<div>Average: {format_duration(result.average_duration)} → "
            f"Current: {format_duration(result.duration)}</div>"
        )
    if not parts:
        return ""
    return f'<div class="test-details">{"".join(parts)}</div>'
