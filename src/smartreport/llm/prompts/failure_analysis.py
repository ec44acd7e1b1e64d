"""Prompt template asking for a short fix suggestion for a failing test."""

from __future__ import annotations

from typing import TYPE_CHECKING

from smartreport.llm.prompts.base import PromptSection, PromptTemplate, truncate

if TYPE_CHECKING:
    from smartreport.models.test_result import TestResult

MAX_ERROR_CHARS = 2000
MAX_STACK_CHARS = 4000


class FailureAnalysisPrompt(PromptTemplate):
    """Turn a failing ``TestResult`` into a bounded fix-suggestion request."""

    @property
    def name(self) -> str:
        return "failure_analysis"

    def _system_instruction(self, _result: TestResult) -> str:
        return (
            "You are an expert Python test engineer. Analyze the pytest failure "
            "and suggest a fix. Be concise (2-3 sentences max)."
        )

    def _build_sections(self, result: TestResult) -> list[PromptSection]:
        error = truncate(result.error or "Unknown error", MAX_ERROR_CHARS)
        stack = truncate(result.error_stack or "No stack trace available", MAX_STACK_CHARS)
        return [
            PromptSection(
                label="Failure",
                content=(
                    f"Test: {result.title}\n"
                    f"File: {result.file}\n"
                    f"Status: {result.status.value}\n"
                    f"Error: {error}"
                ),
            ),
            PromptSection(label="Stack trace", content=stack),
            PromptSection(
                label="Task",
                content="Provide a brief, actionable suggestion to fix this failure.",
            ),
        ]
