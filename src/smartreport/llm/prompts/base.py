"""Base prompt template system."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from smartreport.llm.engine import LLMMessage

if TYPE_CHECKING:
    from smartreport.models.test_result import TestResult


@dataclass
class PromptSection:
    """A labelled block of content within a rendered prompt."""

    label: str
    content: str


@dataclass
class RenderedPrompt:
    """The final output of a prompt template — a list of LLM messages."""

    messages: list[LLMMessage] = field(default_factory=list)

    @property
    def system_message(self) -> str:
        """Return the first system message content, or empty string."""
        for msg in self.messages:
            if msg.role == "system":
                return msg.content
        return ""

    @property
    def user_message(self) -> str:
        """Return the first user message content, or empty string."""
        for msg in self.messages:
            if msg.role == "user":
                return msg.content
        return ""


class PromptTemplate(ABC):
    """Abstract base class for prompt templates.

    Subclasses implement ``_system_instruction`` and ``_build_sections``;
    the base class renders them into a ``RenderedPrompt``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Template identifier (e.g. ``'failure_analysis'``)."""

    @abstractmethod
    def _system_instruction(self, result: TestResult) -> str:
        """Return the system-level instruction text."""

    @abstractmethod
    def _build_sections(self, result: TestResult) -> list[PromptSection]:
        """Return ordered sections that form the user message body."""

    def render(self, result: TestResult) -> RenderedPrompt:
        """Render the template for *result* into system and user messages."""
        return RenderedPrompt(
            messages=[
                LLMMessage(role="system", content=self._system_instruction(result)),
                LLMMessage(role="user", content=_join_sections(self._build_sections(result))),
            ]
        )


def truncate(text: str, limit: int) -> str:
    """Cut *text* to at most *limit* characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "\n... (truncated)"


def _join_sections(sections: list[PromptSection]) -> str:
    return "\n\n".join(f"## {section.label}\n{section.content}" for section in sections)
