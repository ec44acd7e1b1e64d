"""Report writers for smartreport."""

from smartreport.reporters.html import HTMLReporter
from smartreport.reporters.json_reporter import JSONReporter

__all__ = [
    "HTMLReporter",
    "JSONReporter",
]
