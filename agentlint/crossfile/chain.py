"""Delegation chain tracing from a single entry point."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..models import ComponentType, NodeKey
from .graph import ReferenceGraph

DEFAULT_MAX_DEPTH = 16


@dataclass
class ChainLink:
    component_type: ComponentType
    name: str
    path: str
    line_count: int
    children: List["ChainLink"] = field(default_factory=list)

    @property
    def key(self) -> NodeKey:
        return NodeKey(self.component_type, self.name)

    def to_dict(self) -> dict:
        return {
            "type": self.component_type.value,
            "name": self.name,
            "path": self.path,
            "line_count": self.line_count,
            "children": [child.to_dict() for child in self.children],
        }


def trace_chain(
    graph: ReferenceGraph, key: NodeKey, *, max_depth: int = DEFAULT_MAX_DEPTH
) -> Optional[ChainLink]:
    """Build the tree of components reachable from ``key``.

    Returns ``None`` when ``key`` is not indexed. A branch stops at a node that is
    already on its own ancestor path, or once ``max_depth`` levels have been expanded.
    """
    if graph.index.lookup(key) is None:
        return None
    return _trace(graph, key, (), max_depth)


def _trace(
    graph: ReferenceGraph, key: NodeKey, ancestors: Tuple[NodeKey, ...], remaining: int
) -> ChainLink:
    document = graph.index.lookup(key)
    link = ChainLink(
        component_type=key.component_type,
        name=key.name,
        path=document.relative_path if document else "",
        line_count=document.line_count if document else 0,
    )
    if key in ancestors or remaining <= 0:
        return link
    lineage = ancestors + (key,)
    for child in graph.successors(key):
        link.children.append(_trace(graph, child, lineage, remaining - 1))
    return link


def format_chain(link: ChainLink) -> str:
    """Render a chain as an indented tree, one ``name (type, N lines)`` per line."""
    lines = [_label(link)]
    _format_children(link.children, "", lines)
    return "\n".join(lines)


def _label(link: ChainLink) -> str:
    return f"{link.name} ({link.component_type.value}, {link.line_count} lines)"


def _format_children(children: List[ChainLink], prefix: str, lines: List[str]) -> None:
    for position, child in enumerate(children):
        last = position == len(children) - 1
        lines.append(f"{prefix}{'└── ' if last else '├── '}{_label(child)}")
        _format_children(child.children, prefix + ("    " if last else "│   "), lines)


__all__ = ["ChainLink", "DEFAULT_MAX_DEPTH", "format_chain", "trace_chain"]
