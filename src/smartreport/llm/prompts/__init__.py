"""Prompt templates for smartreport."""

from smartreport.llm.prompts.base import PromptSection, PromptTemplate, RenderedPrompt
from smartreport.llm.prompts.failure_analysis import FailureAnalysisPrompt

__all__ = [
    "FailureAnalysisPrompt",
    "PromptSection",
    "PromptTemplate",
    "RenderedPrompt",
]
