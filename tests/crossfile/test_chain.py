"""Tests for agentlint.crossfile.chain."""

from __future__ import annotations

from agentlint.crossfile import CrossFileValidator
from agentlint.crossfile.chain import format_chain, trace_chain
from agentlint.models import ComponentType, NodeKey
from tests._fixtures.corpus_builder import make_document

_DOCUMENTS = [
    make_document("commands/deploy.md", ComponentType.COMMAND, "Run Task(release)\n"),
    make_document("agents/release.md", ComponentType.AGENT, "Skill: ship-it\nSkill: notes\n"),
    make_document("skills/ship-it/SKILL.md", ComponentType.SKILL, "Loop back via Task(release)\n"),
    make_document("skills/notes/SKILL.md", ComponentType.SKILL, "Write notes.\nMore notes.\n"),
]


def test_trace_follows_edges_and_stops_at_ancestors() -> None:
    validator = CrossFileValidator(_DOCUMENTS)

    chain = validator.trace(ComponentType.COMMAND, "deploy")

    assert chain is not None
    assert (chain.component_type, chain.name, chain.path) == (ComponentType.COMMAND, "deploy", "commands/deploy.md")
    (release,) = chain.children
    assert release.name == "release"
    assert [child.name for child in release.children] == ["ship-it", "notes"]
    ship_it = release.children[0]
    assert [child.name for child in ship_it.children] == ["release"]
    assert ship_it.children[0].children == []


def test_trace_unknown_root_returns_none() -> None:
    validator = CrossFileValidator(_DOCUMENTS)

    assert validator.trace(ComponentType.AGENT, "missing") is None


def test_trace_respects_depth_bound() -> None:
    graph = CrossFileValidator(_DOCUMENTS).build_graph()

    chain = trace_chain(graph, NodeKey(ComponentType.COMMAND, "deploy"), max_depth=1)

    assert chain is not None
    assert [child.name for child in chain.children] == ["release"]
    assert chain.children[0].children == []


def test_format_chain_renders_tree() -> None:
    chain = CrossFileValidator(_DOCUMENTS).trace(ComponentType.COMMAND, "deploy")
    assert chain is not None

    rendered = format_chain(chain)

    assert rendered.splitlines() == [
        "deploy (command, 2 lines)",
        "└── release (agent, 3 lines)",
        "    ├── ship-it (skill, 2 lines)",
        "    │   └── release (agent, 3 lines)",
        "    └── notes (skill, 3 lines)",
    ]


def test_chain_link_to_dict() -> None:
    chain = CrossFileValidator(_DOCUMENTS).trace(ComponentType.SKILL, "notes")
    assert chain is not None

    assert chain.to_dict() == {
        "type": "skill",
        "name": "notes",
        "path": "skills/notes/SKILL.md",
        "line_count": 3,
        "children": [],
    }
