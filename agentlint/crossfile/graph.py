"""Reference graph over indexed components and cycle detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple

from ..logging import get_logger
from ..models import SEVERITY_WARNING, Diagnostic, NodeKey
from .index import CorpusIndex
from .resolver import ResolvedEdge

_LOGGER = get_logger("crossfile.graph")

ARROW = " → "

_WHITE, _GREY, _BLACK = 0, 1, 2


class NodeRegistry:
    """Arena of stable integer IDs for node keys."""

    def __init__(self, keys: Iterable[NodeKey] = ()) -> None:
        self._ids: Dict[NodeKey, int] = {}
        self._keys: List[NodeKey] = []
        for key in keys:
            self.add(key)

    def add(self, key: NodeKey) -> int:
        node_id = self._ids.get(key)
        if node_id is None:
            node_id = len(self._keys)
            self._ids[key] = node_id
            self._keys.append(key)
        return node_id

    def id_of(self, key: NodeKey) -> Optional[int]:
        return self._ids.get(key)

    def key_of(self, node_id: int) -> NodeKey:
        return self._keys[node_id]

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[NodeKey]:
        return iter(self._keys)


@dataclass(frozen=True)
class Cycle:
    """Closed walk ``nodes[0] -> ... -> nodes[-1] -> nodes[0]`` over distinct nodes."""

    nodes: Tuple[NodeKey, ...]

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def members(self) -> FrozenSet[NodeKey]:
        return frozenset(self.nodes)

    @property
    def signature(self) -> str:
        return ARROW.join(node.component_type.value for node in self.nodes)

    @property
    def names(self) -> List[str]:
        return [node.name for node in self.nodes] + [self.nodes[0].name]


def format_cycle(cycle: Cycle) -> str:
    """Render ``a → b → a``."""
    return ARROW.join(cycle.names)


class ReferenceGraph:
    """Directed multigraph of resolved references, stored as ID adjacency lists."""

    def __init__(self, index: CorpusIndex, edges: Iterable[ResolvedEdge] = ()) -> None:
        self.index = index
        self.registry = NodeRegistry(sorted(index, key=lambda key: (key.component_type.value, key.name)))
        self._adjacency: List[List[int]] = [[] for _ in range(len(self.registry))]
        self._incoming: List[int] = [0] * len(self.registry)
        for edge in edges:
            self.add_edge(edge.source, edge.target)

    def add_edge(self, source: NodeKey, target: NodeKey) -> None:
        source_id = self.registry.id_of(source)
        target_id = self.registry.id_of(target)
        if source_id is None or target_id is None:
            return
        if target_id in self._adjacency[source_id]:
            return
        self._adjacency[source_id].append(target_id)
        if source_id != target_id:
            self._incoming[target_id] += 1

    def successors(self, key: NodeKey) -> List[NodeKey]:
        """Outgoing neighbours of ``key`` in discovery order, self loops included."""
        node_id = self.registry.id_of(key)
        if node_id is None:
            return []
        return [self.registry.key_of(target) for target in self._adjacency[node_id]]

    def incoming_count(self, key: NodeKey) -> int:
        """Number of distinct other nodes with an edge into ``key``."""
        node_id = self.registry.id_of(key)
        return 0 if node_id is None else self._incoming[node_id]

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._adjacency)

    def _cycle_adjacency(self) -> List[List[int]]:
        return [
            [target for target in targets if target != source]
            for source, targets in enumerate(self._adjacency)
        ]

    def find_cycles(self) -> List[Cycle]:
        """Return every elementary cycle found by a three-colour DFS, once per node set.

        Each DFS starts from every unvisited node in registry order; a back edge to
        a grey node yields the path slice from that node as a cycle, kept in
        the order it was walked.
        """
        adjacency = self._cycle_adjacency()
        colour = [_WHITE] * len(adjacency)
        seen: Set[FrozenSet[int]] = set()
        cycles: List[Cycle] = []

        for start in range(len(adjacency)):
            if colour[start] != _WHITE:
                continue
            path: List[int] = [start]
            position: Dict[int, int] = {start: 0}
            stack: List[Tuple[int, int]] = [(start, 0)]
            colour[start] = _GREY
            while stack:
                node, child_index = stack[-1]
                if child_index >= len(adjacency[node]):
                    stack.pop()
                    path.pop()
                    del position[node]
                    colour[node] = _BLACK
                    continue
                stack[-1] = (node, child_index + 1)
                child = adjacency[node][child_index]
                if colour[child] == _GREY:
                    members = path[position[child]:]
                    member_set = frozenset(members)
                    if member_set not in seen:
                        seen.add(member_set)
                        cycles.append(Cycle(tuple(self.registry.key_of(member) for member in members)))
                elif colour[child] == _WHITE:
                    colour[child] = _GREY
                    position[child] = len(path)
                    path.append(child)
                    stack.append((child, 0))

        _LOGGER.debug("Cycle detection found %d cycle(s) over %d node(s)", len(cycles), len(adjacency))
        return cycles


def cycle_diagnostics(cycles: Iterable[Cycle], index: CorpusIndex) -> List[Diagnostic]:
    """Report each cycle once, on the lexically smallest path among its documents."""
    diagnostics: List[Diagnostic] = []
    for cycle in cycles:
        paths = sorted(
            document.relative_path
            for document in (index.lookup(node) for node in cycle.nodes)
            if document is not None
        )
        if not paths:
            continue
        diagnostics.append(
            Diagnostic(
                file=paths[0],
                message=f"Circular dependency detected: {format_cycle(cycle)}",
                severity=SEVERITY_WARNING,
                subject=cycle.nodes[0].name,
            )
        )
    return diagnostics


__all__ = ["ARROW", "Cycle", "NodeRegistry", "ReferenceGraph", "cycle_diagnostics", "format_cycle"]
