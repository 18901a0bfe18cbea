"""Detection of skills nothing else refers to."""

from __future__ import annotations

from typing import Iterable, List, Set

from ..models import SEVERITY_INFO, ComponentType, Diagnostic, NodeKey
from .extractors import ReferenceMention
from .graph import ReferenceGraph
from .index import node_key


def orphan_message(name: str) -> str:
    return f"Skill '{name}' has no incoming references - consider adding crossrefs from commands/agents/skills"


def referenced_skills(graph: ReferenceGraph, mentions: Iterable[ReferenceMention]) -> Set[str]:
    """Collect skill names with at least one incoming reference from another node.

    Besides typed graph edges, two looser signals count: prose mentions of a skill
    inside another skill, and a command ``Task(name)`` where ``name`` is an existing
    skill rather than a ``*-specialist`` agent.
    """
    skills = set(graph.index.names(ComponentType.SKILL))
    referenced = {
        name for name in skills if graph.incoming_count(NodeKey(ComponentType.SKILL, name)) > 0
    }
    for mention in mentions:
        name = mention.target.name
        if name not in skills or mention.source == (ComponentType.SKILL, name):
            continue
        if mention.target.component_type is ComponentType.SKILL:
            referenced.add(name)
        elif (
            mention.source.component_type is ComponentType.COMMAND
            and not name.endswith("-specialist")
        ):
            referenced.add(name)
    return referenced


def find_orphaned_skills(graph: ReferenceGraph, mentions: Iterable[ReferenceMention] = ()) -> List[Diagnostic]:
    """Report every indexed skill with zero incoming references, ordered by path."""
    referenced = referenced_skills(graph, mentions)
    diagnostics: List[Diagnostic] = []
    for document in graph.index.documents(ComponentType.SKILL):
        name = node_key(document).name
        if name in referenced:
            continue
        diagnostics.append(
            Diagnostic(
                file=document.relative_path,
                message=orphan_message(name),
                severity=SEVERITY_INFO,
                subject=name,
            )
        )
    return sorted(diagnostics, key=lambda item: item.file)


__all__ = ["find_orphaned_skills", "orphan_message", "referenced_skills"]
