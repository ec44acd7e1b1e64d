"""smartreport — flakiness scoring and performance trends for pytest runs."""

__version__ = "0.3.0"
