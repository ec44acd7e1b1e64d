"""External command adapter for delegating generation to a CLI tool.

The prompt is written to the command's stdin and its stdout is taken as the
generated text, which works with tools such as ``claude -p``, ``llm`` or a
project-specific script.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass

from smartreport.llm.engine import (
    GenerationRequest,
    LLMConnectionError,
    LLMEngine,
    LLMError,
    LLMResponse,
)

logger = logging.getLogger(__name__)


@dataclass
class CommandConfig:
    """Configuration for the command adapter."""

    command: str
    """Command line to execute (e.g. ``"claude -p"``)."""

    model: str = ""
    """Model label reported in responses; the command chooses the real model."""

    timeout: float = 60.0
    """Maximum execution time in seconds."""


class CommandLLM(LLMEngine):
    """Engine that pipes prompts through an external command."""

    def __init__(self, config: CommandConfig) -> None:
        self._config = config
        self._argv = shlex.split(config.command)
        if not self._argv:
            raise LLMError("No command configured for 'command' mode.")
        if shutil.which(self._argv[0]) is None:
            raise LLMError(f"Command '{self._argv[0]}' not found on PATH.")

    @property
    def model_name(self) -> str:
        return self._config.model or self._argv[0]

    async def generate(self, request: GenerationRequest) -> LLMResponse:
        prompt = "\n\n".join(message.content for message in request.messages)
        stdout, stderr, exit_code = await self._execute(prompt)

        if exit_code != 0:
            detail = stderr.strip() or stdout.strip() or "no output"
            raise LLMError(f"Command '{self._argv[0]}' failed (exit code {exit_code}): {detail}")

        return LLMResponse(text=stdout.strip(), model=request.model or self.model_name)

    async def _execute(self, prompt: str) -> tuple[str, str, int]:
        """Run the command with *prompt* on stdin and capture its output."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise LLMError(f"Failed to execute '{self._argv[0]}': {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(prompt.encode("utf-8")), timeout=self._config.timeout
            )
        except TimeoutError:
            raise LLMConnectionError(
                f"Command '{self._argv[0]}' timed out after {self._config.timeout} seconds"
            ) from None
        finally:
            # Also reached when the caller cancels us; the child must not outlive the run.
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        logger.debug("Command '%s' exited with %s", self._argv[0], proc.returncode)
        return (
            stdout_bytes.decode("utf-8", errors="replace"),
            stderr_bytes.decode("utf-8", errors="replace"),
            proc.returncode or 0,
        )
