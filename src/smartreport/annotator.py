"""Failure annotation: attach AI fix suggestions to failing tests."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from smartreport.llm.engine import GenerationRequest
from smartreport.llm.prompts.failure_analysis import FailureAnalysisPrompt

if TYPE_CHECKING:
    from collections.abc import Iterable

    from smartreport.llm.engine import LLMEngine
    from smartreport.models.test_result import TestResult

logger = logging.getLogger(__name__)

NO_SUGGESTION = "No suggestion available"


class FailureAnnotator:
    """Request one fix suggestion per failing test.

    Requests run concurrently. Each one is bounded by a timeout and isolated
    from the others: a failure is logged and leaves that result without a
    suggestion.
    """

    def __init__(
        self,
        engine: LLMEngine | None,
        *,
        timeout: float = 60.0,
        max_concurrency: int = 4,
        max_tokens: int = 256,
    ) -> None:
        """Initialize the annotator.

        Args:
            engine: Text-generation engine, or ``None`` to disable annotation.
            timeout: Seconds allowed for each request.
            max_concurrency: Maximum number of requests in flight.
            max_tokens: Maximum tokens requested per suggestion.
        """
        self._engine = engine
        self._timeout = timeout
        self._max_concurrency = max(max_concurrency, 1)
        self._max_tokens = max_tokens
        self._prompt = FailureAnalysisPrompt()

    async def annotate(self, results: Iterable[TestResult]) -> int:
        """Attach suggestions to the failed and timed-out *results*.

        Returns:
            Number of results that received a suggestion.
        """
        failures = [result for result in results if result.status.is_failure]
        if not failures:
            return 0

        if self._engine is None:
            logger.info(
                "Tip: set ANTHROPIC_API_KEY or OPENAI_API_KEY (or configure 'llm' in "
                ".smartreport.yml) for AI failure analysis"
            )
            return 0

        logger.info("Analyzing %d failure(s) with %s", len(failures), self._engine.model_name)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        outcomes = await asyncio.gather(
            *(self._annotate_one(self._engine, result, semaphore) for result in failures)
        )
        return sum(outcomes)

    async def _annotate_one(
        self,
        engine: LLMEngine,
        result: TestResult,
        semaphore: asyncio.Semaphore,
    ) -> bool:
        rendered = self._prompt.render(result)
        request = GenerationRequest(messages=rendered.messages, max_tokens=self._max_tokens)

        async with semaphore:
            try:
                response = await asyncio.wait_for(engine.generate(request), timeout=self._timeout)
                result.ai_suggestion = response.text.strip() or NO_SUGGESTION
            except TimeoutError:
                logger.warning(
                    "AI suggestion for %s timed out after %.0fs", result.test_id, self._timeout
                )
                return False
            except Exception as exc:
                logger.warning("Failed to get AI suggestion for %s: %s", result.test_id, exc)
                return False
        return True
