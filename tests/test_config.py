"""Tests for ``.smartreport.yml`` loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from smartreport.config import CONFIG_FILENAME, load_config, validate_config
from smartreport.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(root: Path, content: str) -> None:
    (root / CONFIG_FILENAME).write_text(content, encoding="utf-8")


def test_defaults_without_file(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.report.enabled is False
    assert config.report.max_history_runs == 10
    assert config.report.performance_threshold == 0.2
    assert config.output_path == tmp_path / "smart-report.html"
    assert config.history_path == tmp_path / "test-history.json"
    assert config.json_output_path is None
    assert validate_config(config) == []


def test_values_from_file(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
report:
  enabled: true
  output_file: reports/index.html
  json_output_file: reports/run.json
  history_file: .cache/history.json
  max_history_runs: 5
  performance_threshold: 0.5
llm:
  mode: ollama
  model: llama3
  max_concurrency: 2
""",
    )

    config = load_config(tmp_path)

    assert config.report.enabled is True
    assert config.output_path == tmp_path / "reports" / "index.html"
    assert config.json_output_path == tmp_path / "reports" / "run.json"
    assert config.history_path == tmp_path / ".cache" / "history.json"
    assert config.report.max_history_runs == 5
    assert config.report.performance_threshold == 0.5
    assert config.llm.mode == "ollama"
    assert config.llm.max_concurrency == 2


def test_env_var_placeholders_are_resolved(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("MY_LLM_KEY", "sk-from-env")
    _write_config(
        tmp_path,
        "llm:\n  provider: openai\n  model: gpt-4o\n  api_key: ${MY_LLM_KEY}\n",
    )

    config = load_config(tmp_path)

    assert config.llm.api_key == "sk-from-env"
    assert config.llm.is_configured


def test_unset_placeholder_becomes_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    _write_config(tmp_path, "llm:\n  api_key: ${DOES_NOT_EXIST_42}\n")

    config = load_config(tmp_path)

    assert config.llm.api_key == ""
    assert "DOES_NOT_EXIST_42" in caplog.text


def test_report_env_fallbacks(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SMARTREPORT_HISTORY_FILE", "ci/history.json")
    monkeypatch.setenv("SMARTREPORT_MAX_HISTORY_RUNS", "20")
    monkeypatch.setenv("SMARTREPORT_PERFORMANCE_THRESHOLD", "0.35")

    config = load_config(tmp_path)

    assert config.history_path == tmp_path / "ci" / "history.json"
    assert config.report.max_history_runs == 20
    assert config.report.performance_threshold == 0.35


def test_file_wins_over_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SMARTREPORT_MAX_HISTORY_RUNS", "20")
    _write_config(tmp_path, "report:\n  max_history_runs: 4\n")
    assert load_config(tmp_path).report.max_history_runs == 4


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    _write_config(tmp_path, "report: [unclosed\n")
    with pytest.raises(yaml.YAMLError):
        load_config(tmp_path)


def test_non_numeric_env_value_raises_config_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SMARTREPORT_MAX_HISTORY_RUNS", "abc")
    with pytest.raises(ConfigError, match=r"report.max_history_runs must be an integer .*'abc'"):
        load_config(tmp_path)


def test_non_numeric_llm_value_raises_config_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "llm:\n  timeout: soon\n")
    with pytest.raises(ConfigError, match="llm.timeout must be a number"):
        load_config(tmp_path)


def test_non_mapping_file_is_ignored(tmp_path: Path) -> None:
    _write_config(tmp_path, "- just\n- a list\n")
    assert load_config(tmp_path).report.output_file == "smart-report.html"


def test_validate_reports_problems(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
report:
  max_history_runs: 0
  performance_threshold: -0.1
  history_file: ""
llm:
  mode: nonsense
""",
    )

    errors = validate_config(load_config(tmp_path))

    assert any("max_history_runs" in e for e in errors)
    assert any("performance_threshold" in e for e in errors)
    assert any("history_file" in e for e in errors)
    assert any("llm.mode" in e for e in errors)
