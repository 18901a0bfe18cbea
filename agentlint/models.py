"""Core data models shared across agentlint components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple


class ComponentType(str, Enum):
    """Kinds of documents that make up a corpus."""

    AGENT = "agent"
    COMMAND = "command"
    SKILL = "skill"
    RULE = "rule"
    REFERENCE = "reference"

    def __str__(self) -> str:
        return self.value


SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_SUGGESTION = "suggestion"
SEVERITY_INFO = "info"

SEVERITIES = (SEVERITY_ERROR, SEVERITY_WARNING, SEVERITY_SUGGESTION, SEVERITY_INFO)

SOURCE_OBSERVATION = "agentlint-observation"
SOURCE_ANTHROPIC_DOCS = "anthropic-docs"


class NodeKey(NamedTuple):
    """Identifies a component by type and canonical name."""

    component_type: ComponentType
    name: str

    def __str__(self) -> str:
        return f"{self.component_type.value}:{self.name}"


@dataclass(frozen=True)
class Document:
    """A discovered corpus file with its parsed frontmatter."""

    path: Path
    relative_path: str
    component_type: ComponentType
    raw_text: str
    frontmatter: Mapping[str, Any] = field(default_factory=dict)

    @property
    def line_count(self) -> int:
        return self.raw_text.count("\n") + 1


@dataclass(frozen=True)
class Diagnostic:
    """A single finding reported against a corpus file."""

    file: str
    message: str
    severity: str
    source: str = SOURCE_OBSERVATION
    subject: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "file": self.file,
            "message": self.message,
            "severity": self.severity,
            "source": self.source,
        }


@dataclass
class Corpus:
    """Normalized view of every linted document under a root directory."""

    root: Path
    documents: List[Document]
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def of_type(self, component_type: ComponentType) -> List[Document]:
        return [doc for doc in self.documents if doc.component_type is component_type]


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
    """Return diagnostics in the stable (file, subject, message) order."""
    return sorted(diagnostics, key=lambda item: (item.file, item.subject, item.message))
