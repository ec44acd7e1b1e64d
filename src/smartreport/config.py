"""Configuration parsing from ``.smartreport.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from smartreport.analysis.performance import DEFAULT_PERFORMANCE_THRESHOLD
from smartreport.llm.config import (
    LLMConfig,
    build_llm_config,
    coerce_number,
    validate_llm_config,
)
from smartreport.memory.test_history import DEFAULT_MAX_RUNS

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".smartreport.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


@dataclass
class ReportConfig:
    """Report and history settings."""

    enabled: bool = False
    """Activate the pytest plugin without passing ``--smart-report``."""

    output_file: str = "smart-report.html"
    """HTML report path, relative to the project root."""

    json_output_file: str = ""
    """Optional JSON report path, relative to the project root."""

    history_file: str = "test-history.json"
    """History snapshot path, relative to the project root."""

    max_history_runs: int = DEFAULT_MAX_RUNS
    """Number of most recent outcomes kept per test."""

    performance_threshold: float = DEFAULT_PERFORMANCE_THRESHOLD
    """Relative deviation from the average that counts as slower or faster."""


@dataclass
class SmartReportConfig:
    """Top-level smartreport configuration."""

    root: str
    """Project root directory; relative artifact paths resolve against it."""

    report: ReportConfig = field(default_factory=ReportConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    raw: dict[str, Any] = field(default_factory=dict)

    def resolve_path(self, path: str) -> Path:
        """Resolve *path* against the project root."""
        return Path(self.root) / path

    @property
    def output_path(self) -> Path:
        return self.resolve_path(self.report.output_file)

    @property
    def json_output_path(self) -> Path | None:
        if not self.report.json_output_file:
            return None
        return self.resolve_path(self.report.json_output_file)

    @property
    def history_path(self) -> Path:
        return self.resolve_path(self.report.history_file)


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}

    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if isinstance(parsed, dict):
        return parsed
    logger.warning("Ignoring %s: expected a mapping at the top level", path)
    return {}


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw.get(name, {})
    return section if isinstance(section, dict) else {}


def load_config(root: str | Path) -> SmartReportConfig:
    """Load configuration from ``.smartreport.yml`` under *root*.

    Missing keys fall back to ``SMARTREPORT_*`` environment variables and
    then to defaults.

    Raises:
        yaml.YAMLError: If the file exists but is not valid YAML.
        ConfigError: If a numeric setting is not a number.
    """
    root_path = Path(root)
    raw = _resolve_dict(_read_yaml(root_path / CONFIG_FILENAME))

    report_raw = _section(raw, "report")
    report = ReportConfig(
        enabled=bool(report_raw.get("enabled", False)),
        output_file=str(
            report_raw.get(
                "output_file", os.environ.get("SMARTREPORT_OUTPUT_FILE", "smart-report.html")
            )
        ),
        json_output_file=str(
            report_raw.get("json_output_file", os.environ.get("SMARTREPORT_JSON_OUTPUT_FILE", ""))
        ),
        history_file=str(
            report_raw.get(
                "history_file", os.environ.get("SMARTREPORT_HISTORY_FILE", "test-history.json")
            )
        ),
        max_history_runs=coerce_number(
            report_raw.get(
                "max_history_runs",
                os.environ.get("SMARTREPORT_MAX_HISTORY_RUNS", DEFAULT_MAX_RUNS),
            ),
            int,
            "report.max_history_runs",
        ),
        performance_threshold=coerce_number(
            report_raw.get(
                "performance_threshold",
                os.environ.get(
                    "SMARTREPORT_PERFORMANCE_THRESHOLD", DEFAULT_PERFORMANCE_THRESHOLD
                ),
            ),
            float,
            "report.performance_threshold",
        ),
    )

    llm = build_llm_config(_section(raw, "llm"))

    return SmartReportConfig(root=str(root_path), report=report, llm=llm, raw=raw)


def validate_config(config: SmartReportConfig) -> list[str]:
    """Validate the configuration.

    Returns:
        List of error messages (empty if valid).
    """
    errors: list[str] = []
    report = config.report

    if report.max_history_runs < 1:
        errors.append(
            f"report.max_history_runs must be at least 1 (got: {report.max_history_runs})"
        )
    if report.performance_threshold < 0:
        errors.append(
            "report.performance_threshold must not be negative "
            f"(got: {report.performance_threshold})"
        )
    if not report.output_file:
        errors.append("report.output_file must not be empty")
    if not report.history_file:
        errors.append("report.history_file must not be empty")

    errors.extend(validate_llm_config(config.llm))
    return errors
