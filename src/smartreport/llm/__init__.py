"""LLM integration layer for smartreport."""

from smartreport.llm.builtin import BuiltinLLM
from smartreport.llm.command import CommandLLM
from smartreport.llm.config import LLMConfig
from smartreport.llm.engine import LLMEngine, LLMError, LLMResponse
from smartreport.llm.factory import create_engine

__all__ = [
    "BuiltinLLM",
    "CommandLLM",
    "LLMConfig",
    "LLMEngine",
    "LLMError",
    "LLMResponse",
    "create_engine",
]
