"""Two-phase cross-file validation over a loaded corpus.

Phase one extracts mentions from every document independently and may run on a
thread pool. Phase two resolves mentions, builds the graph and runs every
corpus-wide check on a single thread.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import DEFAULT_REFERENCE_GLOBS, ChecksConfig
from ..logging import get_logger
from ..models import ComponentType, Diagnostic, Document, NodeKey, sort_diagnostics
from .allowlist import DEFAULT_ALLOW_LIST, BuiltInAllowList
from .chain import DEFAULT_MAX_DEPTH, ChainLink, trace_chain
from .commands import check_fake_flags, check_unused_allowed_tools
from .extractors import ReferenceMention, extract_mentions, extract_prose_skill_mentions
from .graph import Cycle, ReferenceGraph, cycle_diagnostics
from .index import CorpusIndex
from .orphans import find_orphaned_skills
from .resolver import ReferenceResolver
from .skillrefs import validate_skill_references
from .triggers import collect_mappings, detect_trigger_conflicts, load_reference_files, validate_trigger_targets


@dataclass
class CrossFileReport:
    """Outcome of a validation run."""

    diagnostics: List[Diagnostic]
    cycles: List[Cycle] = field(default_factory=list)
    graph: Optional[ReferenceGraph] = None


class CrossFileValidator:
    """Validates references between the documents of one corpus."""

    def __init__(
        self,
        documents: Sequence[Document],
        allow_list: BuiltInAllowList = DEFAULT_ALLOW_LIST,
        options: ChecksConfig | None = None,
        *,
        workers: int = 1,
        reference_globs: Sequence[str] = DEFAULT_REFERENCE_GLOBS,
    ) -> None:
        self.documents = list(documents)
        self.allow_list = allow_list
        self.options = options or ChecksConfig()
        self.workers = max(1, workers)
        self.reference_globs = list(reference_globs)
        self.index = CorpusIndex.build(self.documents)
        self.logger = get_logger("crossfile.validator")
        self._mentions: Optional[List[ReferenceMention]] = None
        self._graph: Optional[ReferenceGraph] = None
        self._dangling: List[Diagnostic] = []

    def extract(self) -> List[ReferenceMention]:
        """Extract mentions from every document, preserving corpus order."""
        if self._mentions is not None:
            return self._mentions
        started = time.perf_counter()
        if self.workers > 1 and len(self.documents) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                batches = list(pool.map(extract_mentions, self.documents))
        else:
            batches = [extract_mentions(document) for document in self.documents]
        self._mentions = [mention for batch in batches for mention in batch]
        self.logger.debug(
            "Extracted %d mention(s) from %d document(s) in %.3fs",
            len(self._mentions),
            len(self.documents),
            time.perf_counter() - started,
        )
        return self._mentions

    def build_graph(self) -> ReferenceGraph:
        if self._graph is None:
            resolver = ReferenceResolver(self.index, self.allow_list)
            edges, self._dangling = resolver.resolve_all(self.extract())
            self._graph = ReferenceGraph(self.index, edges)
            self.logger.debug(
                "Graph has %d node(s), %d edge(s), %d dangling reference(s)",
                len(self._graph.registry),
                self._graph.edge_count,
                len(self._dangling),
            )
        return self._graph

    def detect_cycles(self) -> List[Cycle]:
        return self.build_graph().find_cycles()

    def trace(self, component_type: ComponentType, name: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Optional[ChainLink]:
        return trace_chain(self.build_graph(), NodeKey(component_type, name), max_depth=max_depth)

    def validate(self, root: Path | None = None) -> CrossFileReport:
        """Run every enabled check and return diagnostics in stable order.

        ``root`` enables discovery of reference files outside the loaded corpus.
        """
        graph = self.build_graph()
        diagnostics: List[Diagnostic] = list(self._dangling)
        cycles: List[Cycle] = []

        if self.options.cycles:
            cycles = graph.find_cycles()
            diagnostics.extend(cycle_diagnostics(cycles, self.index))

        if self.options.orphans:
            skill_names = self.index.names(ComponentType.SKILL)
            prose = [
                mention
                for document in self.index.documents(ComponentType.SKILL)
                for mention in extract_prose_skill_mentions(document, skill_names)
            ]
            diagnostics.extend(find_orphaned_skills(graph, self.extract() + prose))

        if self.options.triggers:
            reference_files = load_reference_files(self.documents, root, self.reference_globs)
            mappings = collect_mappings(reference_files)
            diagnostics.extend(validate_trigger_targets(mappings, self.index, self.allow_list))
            diagnostics.extend(detect_trigger_conflicts(mappings))

        if self.options.skill_references:
            diagnostics.extend(validate_skill_references(self.documents))

        for command in self.index.documents(ComponentType.COMMAND):
            if self.options.fake_flags:
                diagnostics.extend(check_fake_flags(command, self.index))
            if self.options.unused_tools:
                diagnostics.extend(check_unused_allowed_tools(command))

        return CrossFileReport(diagnostics=sort_diagnostics(diagnostics), cycles=cycles, graph=graph)


__all__ = ["CrossFileReport", "CrossFileValidator"]
