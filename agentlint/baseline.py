"""Baseline files: accepted findings that later runs should not report again."""

from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, List, Set, Tuple

from .models import Diagnostic

BASELINE_VERSION = "1.0"
DEFAULT_BASELINE_FILENAME = ".agentlint-baseline.json"

_DOUBLE_QUOTED = re.compile(r'"[^"]+"')
# Only whitespace-delimited single quotes, so apostrophes inside words survive.
_SINGLE_QUOTED = re.compile(r"(^|\s)'([^']+)'(\s|$)")
_NUMBER = re.compile(r"\b\d+\b")


class BaselineError(RuntimeError):
    """Raised when a baseline file cannot be read, parsed or written."""


def normalize_message(message: str) -> str:
    """Replace quoted values and numbers so trivially different messages match."""
    message = _DOUBLE_QUOTED.sub('"*"', message)
    message = _SINGLE_QUOTED.sub(r"\1'*'\3", message)
    message = _NUMBER.sub("N", message)
    return " ".join(message.split())


def fingerprint(diagnostic: Diagnostic) -> str:
    data = f"{diagnostic.file}|{diagnostic.source}|{normalize_message(diagnostic.message)}"
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


@dataclass
class Baseline:
    fingerprints: List[str] = field(default_factory=list)
    created_at: str = ""
    version: str = BASELINE_VERSION

    def __post_init__(self) -> None:
        self._index: Set[str] = set(self.fingerprints)

    @classmethod
    def create(cls, diagnostics: Iterable[Diagnostic]) -> "Baseline":
        prints = sorted({fingerprint(diagnostic) for diagnostic in diagnostics})
        return cls(fingerprints=prints, created_at=datetime.now(UTC).isoformat())

    @classmethod
    def load(cls, path: Path) -> "Baseline":
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise BaselineError(f"Failed to read baseline file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise BaselineError(f"Failed to parse baseline file {path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise BaselineError(f"Baseline file {path} must contain a JSON object")
        prints = payload.get("fingerprints") or []
        if not isinstance(prints, list) or not all(isinstance(item, str) for item in prints):
            raise BaselineError(f"Baseline file {path} has an invalid fingerprints list")
        return cls(
            fingerprints=list(prints),
            created_at=str(payload.get("created_at", "")),
            version=str(payload.get("version", BASELINE_VERSION)),
        )

    def save(self, path: Path) -> None:
        payload = {
            "version": self.version,
            "created_at": self.created_at,
            "fingerprints": sorted(self._index),
        }
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise BaselineError(f"Failed to write baseline file {path}: {exc}") from exc

    def is_known(self, diagnostic: Diagnostic) -> bool:
        return fingerprint(diagnostic) in self._index

    def __len__(self) -> int:
        return len(self._index)


def filter_known(diagnostics: Iterable[Diagnostic], baseline: Baseline | None) -> Tuple[List[Diagnostic], int]:
    """Split out diagnostics present in ``baseline``; returns (remaining, suppressed count)."""
    if baseline is None:
        return list(diagnostics), 0
    remaining: List[Diagnostic] = []
    suppressed = 0
    for diagnostic in diagnostics:
        if baseline.is_known(diagnostic):
            suppressed += 1
        else:
            remaining.append(diagnostic)
    return remaining, suppressed


__all__ = [
    "BASELINE_VERSION",
    "Baseline",
    "BaselineError",
    "DEFAULT_BASELINE_FILENAME",
    "filter_known",
    "fingerprint",
    "normalize_message",
]
