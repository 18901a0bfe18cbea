"""Tests for agentlint.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentlint.config import ChecksConfig, ConfigError, LintConfig, OutputConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, LintConfig)
    assert config.root == tmp_path.resolve()
    assert config.exclude_paths == []
    assert config.builtin_types == []
    assert config.reference_globs == [".claude/skills/*/references/*.md", "skills/*/references/*.md"]
    assert config.checks == ChecksConfig()
    assert config.output == OutputConfig(format="console", fail_on="error")
    assert config.baseline is None
    assert config.workers == 1


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".agentlint.yml"
    config_file.write_text(
        """
exclude_paths:
  - "drafts/"
builtin_types: [my-runtime-agent]
reference_globs:
  - "docs/*/references/*.md"
checks:
  orphans: false
  fake_flags: "no"
output:
  format: JSON
  fail_on: warning
baseline: .agentlint-baseline.json
workers: 4
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.exclude_paths == ["drafts/"]
    assert config.builtin_types == ["my-runtime-agent"]
    assert config.reference_globs == ["docs/*/references/*.md"]
    assert config.checks.orphans is False
    assert config.checks.fake_flags is False
    assert config.checks.cycles is True
    assert config.output.format == "json"
    assert config.output.fail_on == "warning"
    assert config.baseline == tmp_path.resolve() / ".agentlint-baseline.json"
    assert config.workers == 4


def test_environment_overrides_output_settings(tmp_path: Path) -> None:
    (tmp_path / ".agentlint.yml").write_text("output:\n  format: console\n", encoding="utf-8")

    config = load_config(tmp_path, environ={"AGENTLINT_FORMAT": "markdown", "AGENTLINT_FAIL_ON": "suggestion"})

    assert config.output.format == "markdown"
    assert config.output.fail_on == "suggestion"


def test_invalid_format_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".agentlint.yml").write_text("output:\n  format: xml\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="output.format"):
        load_config(tmp_path, environ={})


def test_non_mapping_root_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".agentlint.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, environ={})


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".agentlint.yml").write_text("checks: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path, environ={})


@pytest.mark.parametrize("value", ["0", "-2", "many"])
def test_workers_must_be_positive_integer(tmp_path: Path, value: str) -> None:
    (tmp_path / ".agentlint.yml").write_text(f"workers: {value}\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="workers"):
        load_config(tmp_path, environ={})


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".agentlint.yml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path, environ={})

    assert config.output.format == "console"
