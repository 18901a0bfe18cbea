"""Corpus index keyed by component type and canonical name."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from ..models import ComponentType, Document, NodeKey


def _file_stem(relative_path: str) -> str:
    filename = relative_path.rsplit("/", 1)[-1]
    if filename.lower().endswith(".md"):
        return filename[:-3]
    return filename


def _skill_directory(relative_path: str) -> str:
    parts = relative_path.split("/")
    for position, part in enumerate(parts):
        if part == "skills" and position + 1 < len(parts) - 1:
            return parts[position + 1]
    return parts[-2] if len(parts) > 1 else ""


def canonical_name(component_type: ComponentType, relative_path: str) -> str:
    """Derive the name other documents use to refer to the file at ``relative_path``.

    ``agents/foo.md`` -> ``foo``; ``.claude/skills/bar/SKILL.md`` -> ``bar``;
    ``skills/bar/references/map.md`` -> ``bar/map``.
    """
    if component_type is ComponentType.SKILL:
        return _skill_directory(relative_path)
    if component_type is ComponentType.REFERENCE:
        return f"{_skill_directory(relative_path)}/{_file_stem(relative_path)}"
    return _file_stem(relative_path)


def node_key(document: Document) -> NodeKey:
    return NodeKey(document.component_type, canonical_name(document.component_type, document.relative_path))


_EXPECTED_PATHS = {
    ComponentType.AGENT: "agents/{name}.md",
    ComponentType.COMMAND: "commands/{name}.md",
    ComponentType.SKILL: "skills/{name}/SKILL.md",
    ComponentType.RULE: "rules/{name}.md",
}


def expected_path(key: NodeKey) -> str:
    """Return the relative path a user should create to satisfy ``key``."""
    if key.component_type is ComponentType.REFERENCE:
        skill, _, stem = key.name.partition("/")
        return f"skills/{skill}/references/{stem}.md"
    return _EXPECTED_PATHS[key.component_type].format(name=key.name)


class CorpusIndex:
    """Lookup from ``(component type, canonical name)`` to the defining document."""

    def __init__(self) -> None:
        self._documents: Dict[NodeKey, Document] = {}

    @classmethod
    def build(cls, documents: Iterable[Document]) -> "CorpusIndex":
        index = cls()
        for document in documents:
            key = node_key(document)
            if not key.name:
                continue
            # Later documents replace earlier ones with the same key.
            index._documents[key] = document
        return index

    def __contains__(self, key: object) -> bool:
        return key in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[NodeKey]:
        return iter(self._documents)

    def lookup(self, key: NodeKey) -> Optional[Document]:
        return self._documents.get(key)

    def has(self, component_type: ComponentType, name: str) -> bool:
        return NodeKey(component_type, name) in self._documents

    def names(self, component_type: ComponentType) -> List[str]:
        return sorted(key.name for key in self._documents if key.component_type is component_type)

    def documents(self, component_type: ComponentType) -> List[Document]:
        """Return documents of ``component_type`` ordered by canonical name."""
        return [
            self._documents[NodeKey(component_type, name)]
            for name in self.names(component_type)
        ]


__all__ = ["CorpusIndex", "canonical_name", "expected_path", "node_key"]
