"""LiteLLM-backed engine for hosted providers and Ollama."""

from __future__ import annotations

import logging
from typing import Any

import litellm
from litellm.exceptions import APIConnectionError, APIError, AuthenticationError, Timeout

from smartreport.llm.engine import (
    GenerationRequest,
    LLMAuthError,
    LLMConnectionError,
    LLMEngine,
    LLMError,
    LLMResponse,
    LLMResponseError,
)

logger = logging.getLogger(__name__)

# Keep litellm's banners out of pytest output
litellm.suppress_debug_info = True


class BuiltinLLM(LLMEngine):
    """Engine that routes through ``litellm.acompletion``.

    The provider is picked by LiteLLM from the model string
    (``claude-3-haiku-20240307``, ``gpt-3.5-turbo``, ``ollama/llama3``) or
    forced with *provider*. LiteLLM's own retries are switched off.
    """

    def __init__(
        self,
        model: str,
        *,
        provider: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 256,
        timeout: float = 60.0,
    ) -> None:
        self._model = model
        self._provider = provider
        self._api_key = api_key
        self._base_url = base_url
        self._max_tokens = max_tokens
        self._timeout = timeout

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, request: GenerationRequest) -> LLMResponse:
        model = request.model or self._model
        try:
            completion = await litellm.acompletion(**self._completion_kwargs(request, model))
        except AuthenticationError as exc:
            raise LLMAuthError(str(exc)) from exc
        except (APIConnectionError, Timeout) as exc:
            raise LLMConnectionError(str(exc)) from exc
        except APIError as exc:
            raise LLMError(str(exc)) from exc
        except Exception as exc:
            raise LLMError(f"LiteLLM request failed: {exc}") from exc

        logger.debug("Completion received from %s", model)
        return _to_response(completion, model)

    def _completion_kwargs(self, request: GenerationRequest, model: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "temperature": request.temperature,
            "max_tokens": min(request.max_tokens, self._max_tokens),
            "timeout": self._timeout,
            "num_retries": 0,
        }
        optional = {
            "custom_llm_provider": self._provider,
            "api_key": self._api_key,
            "api_base": self._base_url,
        }
        kwargs.update({key: value for key, value in optional.items() if value})
        kwargs.update(request.extra)
        return kwargs


def _to_response(completion: Any, model: str) -> LLMResponse:
    try:
        text = completion.choices[0].message.content or ""
    except (AttributeError, IndexError, TypeError) as exc:
        raise LLMResponseError(f"Malformed completion from {model}: {exc}") from exc

    if not isinstance(text, str):
        raise LLMResponseError(
            f"Malformed completion from {model}: expected text, got {type(text).__name__}"
        )
    return LLMResponse(text=text, model=getattr(completion, "model", None) or model)
