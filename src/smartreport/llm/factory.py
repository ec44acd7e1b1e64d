"""Factory for creating an ``LLMEngine`` from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from smartreport.llm.builtin import BuiltinLLM
from smartreport.llm.command import CommandConfig, CommandLLM
from smartreport.llm.engine import LLMEngine, LLMError

if TYPE_CHECKING:
    from smartreport.llm.config import LLMConfig

logger = logging.getLogger(__name__)


def create_engine(config: LLMConfig) -> LLMEngine | None:
    """Instantiate the ``LLMEngine`` selected by *config*.

    Supports modes:
    - ``builtin``: LiteLLM-based engine for API providers
    - ``ollama``: LiteLLM with Ollama configuration
    - ``command``: Pipes prompts through an external command
    - ``disabled``: No engine

    Returns:
        The engine, or ``None`` when no provider is configured. Running
        without an engine is a normal setup, not an error.

    Raises:
        LLMError: If the mode is unknown or the configured command is missing.
    """
    if config.mode == "disabled" or not config.is_configured:
        logger.debug("No LLM configured (mode=%s)", config.mode)
        return None

    if config.mode == "builtin":
        return BuiltinLLM(
            config.model,
            provider=config.provider or None,
            api_key=config.api_key or None,
            base_url=config.base_url or None,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
    if config.mode == "ollama":
        model = config.model if "/" in config.model else f"ollama/{config.model}"
        return BuiltinLLM(
            model,
            provider="ollama",
            base_url=config.base_url or None,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
    if config.mode == "command":
        return CommandLLM(
            CommandConfig(command=config.command, model=config.model, timeout=config.timeout)
        )

    raise LLMError(f"Unsupported LLM mode: {config.mode!r}")
