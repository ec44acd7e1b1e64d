"""Text-generation interface shared by every suggestion provider.

Providers differ only in transport (LiteLLM, external command); the failure
annotator talks to all of them through :class:`LLMEngine`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class LLMMessage:
    """Chat message passed to a provider."""

    role: str  # system | user | assistant
    content: str


@dataclass
class GenerationRequest:
    """What to send and how much to get back."""

    messages: list[LLMMessage]
    model: str | None = None
    """Per-request model override; the engine default is used when unset."""

    temperature: float = 0.2
    max_tokens: int = 256
    extra: dict[str, object] = field(default_factory=dict)
    """Passed through untouched to the provider call."""


@dataclass
class LLMResponse:
    """Generated text and the model that produced it."""

    text: str
    model: str


class LLMEngine(ABC):
    """A provider that turns a prompt into text or fails with ``LLMError``.

    Engines make a single attempt per call. Timeouts, concurrency limits and
    the decision to carry on after a failure belong to the caller.
    """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model label used in logs and responses."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> LLMResponse:
        """Run one generation call.

        Raises:
            LLMError: If the provider is unreachable, rejects the credentials
                or returns something that is not a completion.
        """


class LLMError(Exception):
    """A suggestion could not be generated."""


class LLMAuthError(LLMError):
    """The provider rejected the configured credentials."""


class LLMConnectionError(LLMError):
    """The provider could not be reached or did not answer in time."""


class LLMResponseError(LLMError):
    """The provider answered, but not with a usable completion."""
