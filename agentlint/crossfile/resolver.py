"""Resolution of extracted mentions against the corpus index."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

from ..models import SEVERITY_ERROR, SOURCE_ANTHROPIC_DOCS, SOURCE_OBSERVATION, Diagnostic, NodeKey
from .allowlist import DEFAULT_ALLOW_LIST, BuiltInAllowList
from .extractors import MentionKind, ReferenceMention, dedupe_mentions
from .index import CorpusIndex, expected_path


class Resolution(str, Enum):
    RESOLVED = "resolved"
    ALLOWED = "allowed"
    DANGLING = "dangling"


@dataclass(frozen=True)
class ResolvedEdge:
    """A mention whose target exists in the index."""

    mention: ReferenceMention

    @property
    def source(self) -> NodeKey:
        return self.mention.source

    @property
    def target(self) -> NodeKey:
        return self.mention.target


def dangling_message(mention: ReferenceMention) -> str:
    target = mention.target
    return (
        f"{mention.origin} references non-existent {target.component_type.value} "
        f"'{target.name}'. Create {expected_path(target)}"
    )


class ReferenceResolver:
    """Classifies mentions as resolved, allow-listed or dangling.

    The index is only read; resolving never adds or removes entries.
    """

    def __init__(self, index: CorpusIndex, allow_list: BuiltInAllowList = DEFAULT_ALLOW_LIST) -> None:
        self.index = index
        self.allow_list = allow_list

    def resolve(self, mention: ReferenceMention) -> Resolution:
        if mention.target.name in self.allow_list:
            return Resolution.ALLOWED
        if mention.target in self.index:
            return Resolution.RESOLVED
        return Resolution.DANGLING

    def resolve_all(
        self, mentions: Iterable[ReferenceMention]
    ) -> Tuple[List[ResolvedEdge], List[Diagnostic]]:
        """Resolve ``mentions`` into graph edges and dangling-reference errors."""
        edges: List[ResolvedEdge] = []
        diagnostics: List[Diagnostic] = []
        for mention in dedupe_mentions(mentions):
            outcome = self.resolve(mention)
            if outcome is Resolution.RESOLVED:
                edges.append(ResolvedEdge(mention))
            elif outcome is Resolution.DANGLING:
                source = SOURCE_ANTHROPIC_DOCS if mention.kind is MentionKind.FRONTMATTER else SOURCE_OBSERVATION
                diagnostics.append(
                    Diagnostic(
                        file=mention.source_path,
                        message=dangling_message(mention),
                        severity=SEVERITY_ERROR,
                        source=source,
                        subject=mention.target.name,
                    )
                )
        return edges, diagnostics


__all__ = ["ReferenceResolver", "Resolution", "ResolvedEdge", "dangling_message"]
