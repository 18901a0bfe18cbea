"""Configuration loading for agentlint (.agentlint.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .models import SEVERITY_ERROR, SEVERITY_SUGGESTION, SEVERITY_WARNING

CONFIG_FILENAME = ".agentlint.yml"

OUTPUT_FORMATS = ("console", "json", "markdown")
FAIL_ON_LEVELS = (SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_SUGGESTION)

DEFAULT_REFERENCE_GLOBS = (
    ".claude/skills/*/references/*.md",
    "skills/*/references/*.md",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ChecksConfig:
    """Toggles for the cross-file checks that run after reference resolution."""

    cycles: bool = True
    orphans: bool = True
    triggers: bool = True
    skill_references: bool = True
    fake_flags: bool = True
    unused_tools: bool = True


@dataclass
class OutputConfig:
    """Report rendering and exit status settings."""

    format: str = "console"
    fail_on: str = SEVERITY_ERROR


@dataclass
class LintConfig:
    """Represents the settings defined in .agentlint.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    builtin_types: List[str] = field(default_factory=list)
    reference_globs: List[str] = field(default_factory=lambda: list(DEFAULT_REFERENCE_GLOBS))
    checks: ChecksConfig = field(default_factory=ChecksConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    baseline: Optional[Path] = None
    workers: int = 1


def load_config(config_path: Path, *, environ: Mapping[str, str] | None = None) -> LintConfig:
    """Load configuration from disk, applying environment overrides."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    env = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    config = LintConfig(root=root)
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    config.builtin_types = _as_str_list(data.get("builtin_types"))

    globs = _as_str_list(data.get("reference_globs"))
    if globs:
        config.reference_globs = globs

    checks_data = _as_dict(data.get("checks"))
    for name in ("cycles", "orphans", "triggers", "skill_references", "fake_flags", "unused_tools"):
        value = _as_bool(checks_data.get(name))
        if value is not None:
            setattr(config.checks, name, value)

    output_data = _as_dict(data.get("output"))
    fmt = _as_str(env.get("AGENTLINT_FORMAT")) or _as_str(output_data.get("format"))
    if fmt:
        config.output.format = _choice(fmt, OUTPUT_FORMATS, "output.format")
    fail_on = _as_str(env.get("AGENTLINT_FAIL_ON")) or _as_str(output_data.get("fail_on"))
    if fail_on:
        config.output.fail_on = _choice(fail_on, FAIL_ON_LEVELS, "output.fail_on")

    baseline = _as_str(data.get("baseline"))
    if baseline:
        config.baseline = root / baseline

    if "workers" in data:
        workers = _as_int(data.get("workers"))
        if workers is None or workers < 1:
            raise ConfigError("workers must be a positive integer")
        config.workers = workers

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return loaded


def _choice(value: str, allowed: Sequence[str], key: str) -> str:
    normalized = value.strip().lower()
    if normalized not in allowed:
        options = ", ".join(allowed)
        raise ConfigError(f"Invalid {key}: {value!r}. Must be one of: {options}")
    return normalized


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
