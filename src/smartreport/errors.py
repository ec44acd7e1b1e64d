"""Exception hierarchy for smartreport."""

from __future__ import annotations


class SmartReportError(Exception):
    """Base exception for smartreport failures."""


class LifecycleError(SmartReportError):
    """Raised when engine lifecycle calls arrive out of order."""


class HistoryWriteError(SmartReportError):
    """Raised when the history snapshot cannot be persisted."""


class ReportWriteError(SmartReportError):
    """Raised when a report artifact cannot be written."""


class ConfigError(SmartReportError):
    """Raised when a configuration value cannot be parsed."""
