"""Persistent storage for smartreport."""

from smartreport.memory.store import MemoryStore
from smartreport.memory.test_history import DEFAULT_MAX_RUNS, TestHistoryStore

__all__ = [
    "DEFAULT_MAX_RUNS",
    "MemoryStore",
    "TestHistoryStore",
]
