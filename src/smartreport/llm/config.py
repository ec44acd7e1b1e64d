"""LLM configuration parsing from ``.smartreport.yml``."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from smartreport.errors import ConfigError

VALID_MODES = ("builtin", "ollama", "command", "disabled")

# Credentials picked up when nothing is configured explicitly, in priority order.
_AUTO_PROVIDERS = (
    ("ANTHROPIC_API_KEY", "anthropic", "claude-3-haiku-20240307"),
    ("OPENAI_API_KEY", "openai", "gpt-3.5-turbo"),
)



def coerce_number(value: Any, cast: type[int] | type[float], key: str) -> Any:
    """Convert a YAML or environment *value* for *key* with *cast*.

    Raises:
        ConfigError: If the value is not a number.
    """
    try:
        return cast(value)
    except (TypeError, ValueError):
        kind = "an integer" if cast is int else "a number"
        raise ConfigError(f"{key} must be {kind} (got: {value!r})") from None


@dataclass
class LLMConfig:
    """Parsed LLM configuration for failure analysis."""

    mode: str = "builtin"
    """Execution mode: ``builtin`` (LiteLLM), ``ollama``, ``command``, or ``disabled``."""

    provider: str = ""
    """LLM provider name (``anthropic``, ``openai``, ``ollama``, etc.)."""

    model: str = ""
    """Model identifier (e.g. ``claude-3-haiku-20240307``)."""

    api_key: str = ""
    """API key for the provider (supports ``${ENV_VAR}`` expansion)."""

    base_url: str = ""
    """Custom base URL (useful for Ollama or proxied endpoints)."""

    command: str = ""
    """Command line used in ``command`` mode; receives the prompt on stdin."""

    timeout: float = 60.0
    """Per-request timeout in seconds."""

    max_tokens: int = 256
    """Maximum tokens to generate per suggestion."""

    max_concurrency: int = 4
    """Maximum number of suggestion requests in flight."""

    @property
    def is_configured(self) -> bool:
        """Return ``True`` when enough info is present for generation."""
        if self.mode == "disabled":
            return False
        if self.mode == "ollama":
            return bool(self.model)
        if self.mode == "command":
            return bool(self.command)
        return bool(self.model and self.api_key)


def auto_detect_credentials(config: LLMConfig) -> LLMConfig:
    """Fill provider, model and key from well-known environment variables.

    Only applies in ``builtin`` mode when no API key was configured.
    """
    if config.mode != "builtin" or config.api_key:
        return config

    for env_var, provider, model in _AUTO_PROVIDERS:
        key = os.environ.get(env_var, "")
        if key:
            config.api_key = key
            config.provider = config.provider or provider
            config.model = config.model or model
            break
    return config


def build_llm_config(raw: dict[str, Any]) -> LLMConfig:
    """Build an ``LLMConfig`` from the raw ``llm`` section.

    ``${VAR}`` placeholders must already be resolved.
    """
    config = LLMConfig(
        mode=str(raw.get("mode", os.environ.get("SMARTREPORT_LLM_MODE", "builtin"))),
        provider=str(raw.get("provider", os.environ.get("SMARTREPORT_LLM_PROVIDER", ""))),
        model=str(raw.get("model", os.environ.get("SMARTREPORT_LLM_MODEL", ""))),
        api_key=str(raw.get("api_key", os.environ.get("SMARTREPORT_LLM_API_KEY", ""))),
        base_url=str(raw.get("base_url", os.environ.get("SMARTREPORT_LLM_BASE_URL", ""))),
        command=str(raw.get("command", "")),
        timeout=coerce_number(raw.get("timeout", 60.0), float, "llm.timeout"),
        max_tokens=coerce_number(raw.get("max_tokens", 256), int, "llm.max_tokens"),
        max_concurrency=coerce_number(
            raw.get("max_concurrency", 4), int, "llm.max_concurrency"
        ),
    )
    return auto_detect_credentials(config)


def validate_llm_config(llm: LLMConfig) -> list[str]:
    """Return human-readable problems with *llm* (empty if valid)."""
    errors: list[str] = []
    if llm.mode not in VALID_MODES:
        errors.append(f"llm.mode must be one of: {', '.join(VALID_MODES)} (got: {llm.mode})")
    if llm.timeout <= 0:
        errors.append(f"llm.timeout must be positive (got: {llm.timeout})")
    if llm.max_tokens < 1:
        errors.append(f"llm.max_tokens must be at least 1 (got: {llm.max_tokens})")
    if llm.max_concurrency < 1:
        errors.append(f"llm.max_concurrency must be at least 1 (got: {llm.max_concurrency})")
    if llm.mode == "command" and not llm.command:
        errors.append("llm.command is required for 'command' mode")
    return errors
