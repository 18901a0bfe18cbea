"""Consistency between a skill's ``references/`` mentions and its reference files."""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, List, Set

from ..models import SEVERITY_ERROR, SEVERITY_INFO, ComponentType, Diagnostic, Document

REFERENCE_MENTION_PATTERN = re.compile(r"references/([a-zA-Z0-9_-]+\.md)")


def mentioned_references(contents: str) -> List[str]:
    return sorted({match.group(1) for match in REFERENCE_MENTION_PATTERN.finditer(contents)})


def _references_dir(skill: Document) -> str:
    return posixpath.join(posixpath.dirname(skill.relative_path), "references")


def actual_references(skill: Document, documents: Iterable[Document]) -> List[str]:
    """File names of reference documents sitting directly in the skill's ``references/``."""
    directory = _references_dir(skill)
    names: Set[str] = set()
    for document in documents:
        if document.component_type is not ComponentType.REFERENCE:
            continue
        parent, name = posixpath.split(document.relative_path)
        if parent == directory and name.endswith(".md"):
            names.add(name)
    return sorted(names)


def validate_skill_references(documents: Iterable[Document]) -> List[Diagnostic]:
    """Report mentioned-but-missing and present-but-unmentioned reference files."""
    documents = list(documents)
    skills = sorted(
        (document for document in documents if document.component_type is ComponentType.SKILL),
        key=lambda document: document.relative_path,
    )
    diagnostics: List[Diagnostic] = []
    for skill in skills:
        mentioned = mentioned_references(skill.raw_text)
        actual = actual_references(skill, documents)
        for name in mentioned:
            if name not in actual:
                diagnostics.append(
                    Diagnostic(
                        file=skill.relative_path,
                        message=f"references/{name} is mentioned but does not exist on disk",
                        severity=SEVERITY_ERROR,
                        subject=name,
                    )
                )
        for name in actual:
            if name not in mentioned:
                diagnostics.append(
                    Diagnostic(
                        file=posixpath.join(_references_dir(skill), name),
                        message=(
                            f"references/{name} exists but is not mentioned in SKILL.md"
                            " - add a reference or remove the file"
                        ),
                        severity=SEVERITY_INFO,
                        subject=name,
                    )
                )
    return diagnostics


__all__ = ["REFERENCE_MENTION_PATTERN", "actual_references", "mentioned_references", "validate_skill_references"]
