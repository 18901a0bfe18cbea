"""Tests for agentlint.crossfile.triggers."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from agentlint.crossfile import CrossFileValidator
from agentlint.crossfile.index import CorpusIndex
from agentlint.crossfile.triggers import (
    TriggerMapping,
    detect_trigger_conflicts,
    identify_routing_columns,
    is_likely_skill_name,
    is_separator_row,
    is_trigger_map,
    load_reference_files,
    parse_trigger_table,
    strip_reference_paths,
    validate_trigger_targets,
)
from agentlint.models import ComponentType
from tests._fixtures.corpus_builder import make_document

SKILL = ComponentType.SKILL
AGENT = ComponentType.AGENT


def _table(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


def test_is_trigger_map_detects_header_case_insensitively() -> None:
    assert is_trigger_map("intro\n| trigger keyword | Skill |\n")
    assert not is_trigger_map("| Keyword | Skill |\n")


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("|---|---|", True),
        ("| :--- | ---: |", True),
        ("|   |   |", False),
        ("| a | --- |", False),
        ("---", False),
    ],
)
def test_is_separator_row(line: str, expected: bool) -> None:
    assert is_separator_row(line) is expected


def test_is_likely_skill_name() -> None:
    assert is_likely_skill_name("arch-db")
    assert not is_likely_skill_name("a-b")
    assert not is_likely_skill_name("database")


def test_identify_routing_columns_by_header_keyword() -> None:
    assert identify_routing_columns("| Trigger | Notes | Route to | Agent |") == [3, 4]


def test_identify_routing_columns_falls_back_to_all_columns() -> None:
    assert identify_routing_columns("| Trigger | Description | Notes |") == [2, 3]


def test_strip_reference_paths() -> None:
    assert strip_reference_paths("see references/cache-layer.md or arch-cache") == "see  or arch-cache"


def test_parse_trigger_table_extracts_skills_and_agents() -> None:
    contents = _table(
        """
        # Routing

        | Trigger | Route to | Notes |
        |---------|----------|-------|
        | Cache | arch-cache-core | see references/cache-layer.md |
        | Deploy | Task(`release-specialist`) and ops-runbook | fast |
        """
    )

    mappings = parse_trigger_table("skills/x/references/map.md", contents)

    assert mappings == [
        TriggerMapping("skills/x/references/map.md", "cache", "arch-cache-core", SKILL),
        TriggerMapping("skills/x/references/map.md", "deploy", "release-specialist", AGENT),
    ]


def test_fallback_columns_may_yield_descriptive_words() -> None:
    contents = _table(
        """
        | Trigger | Description |
        |---|---|
        | test | runs the full-suite quickly |
        """
    )

    mappings = parse_trigger_table("ref.md", contents)

    assert [(item.keyword, item.target) for item in mappings] == [("test", "full-suite")]


def test_table_state_resets_after_non_table_line() -> None:
    contents = _table(
        """
        | Trigger | Skill |
        |---|---|
        | one | first-skill |

        | Keyword | Skill |
        |---|---|
        | two | second-skill |
        """
    )

    mappings = parse_trigger_table("ref.md", contents)

    assert [item.target for item in mappings] == ["first-skill"]


def _mapping(keyword: str, target: str, source: str, kind: ComponentType = SKILL) -> TriggerMapping:
    return TriggerMapping(source, keyword.lower(), target, kind)


def test_conflict_is_case_symmetric() -> None:
    mappings = [
        _mapping("Cache", "arch-cache-core", "a/references/one.md"),
        _mapping("cache", "arch-cache-alt", "b/references/two.md"),
    ]

    diagnostics = detect_trigger_conflicts(mappings)

    assert len(diagnostics) == 1
    assert diagnostics[0].severity == "warning"
    assert diagnostics[0].file == "a/references/one.md"
    assert diagnostics[0].message == (
        "Trigger keyword 'cache' routes to conflicting targets: "
        "'arch-cache-core' (skill, in a/references/one.md); "
        "'arch-cache-alt' (skill, in b/references/two.md)"
    )


def test_same_target_from_many_files_is_not_a_conflict() -> None:
    mappings = [_mapping("test", "code-testing-qa", f"s{number}/references/map.md") for number in range(4)]

    assert detect_trigger_conflicts(mappings) == []


def test_same_name_as_skill_and_agent_conflicts() -> None:
    mappings = [
        _mapping("review", "code-review", "a.md", SKILL),
        _mapping("review", "code-review", "b.md", AGENT),
    ]

    assert len(detect_trigger_conflicts(mappings)) == 1


def test_empty_keywords_never_conflict() -> None:
    mappings = [_mapping("", "skill-one", "a.md"), _mapping("", "skill-two", "b.md")]

    assert detect_trigger_conflicts(mappings) == []


def test_ghost_targets_are_reported_once_per_file() -> None:
    index = CorpusIndex.build(
        [
            make_document("skills/real-skill/SKILL.md", SKILL, "x\n"),
            make_document("agents/real-agent.md", AGENT, "x\n"),
        ]
    )
    mappings = [
        _mapping("a", "real-skill", "ref.md"),
        _mapping("b", "ghost-skill", "ref.md"),
        _mapping("c", "ghost-skill", "ref.md"),
        _mapping("d", "real-agent", "ref.md", AGENT),
        _mapping("e", "ghost-agent", "ref.md", AGENT),
        _mapping("f", "general-purpose", "ref.md", AGENT),
    ]

    diagnostics = validate_trigger_targets(mappings, index)

    assert [item.message for item in diagnostics] == [
        "Trigger map references non-existent skill 'ghost-skill'. Create skills/ghost-skill/SKILL.md",
        "Trigger map references non-existent agent 'ghost-agent'. Create agents/ghost-agent.md",
    ]
    assert {item.severity for item in diagnostics} == {"error"}


def test_load_reference_files_unions_corpus_and_globs(tmp_path: Path) -> None:
    on_disk = tmp_path / ".claude" / "skills" / "extra" / "references" / "map.md"
    on_disk.parent.mkdir(parents=True)
    on_disk.write_text("| Trigger | Skill |\n", encoding="utf-8")
    shadowed = tmp_path / "skills" / "core" / "references" / "map.md"
    shadowed.parent.mkdir(parents=True)
    shadowed.write_text("disk copy\n", encoding="utf-8")
    document = make_document("skills/core/references/map.md", ComponentType.REFERENCE, "corpus copy\n")

    files = load_reference_files(
        [document], tmp_path, [".claude/skills/*/references/*.md", "skills/*/references/*.md"]
    )

    assert files == {
        ".claude/skills/extra/references/map.md": "| Trigger | Skill |\n",
        "skills/core/references/map.md": "corpus copy\n",
    }


def test_load_reference_files_without_root_uses_corpus_only() -> None:
    document = make_document("skills/core/references/map.md", ComponentType.REFERENCE, "x\n")
    other = make_document("agents/a.md", AGENT, "y\n")

    assert load_reference_files([document, other]) == {"skills/core/references/map.md": "x\n"}


def test_allow_listed_names_are_never_ghost_targets() -> None:
    index = CorpusIndex.build([])
    mappings = [
        _mapping("help", "claude-code-guide", "ref.md"),
        _mapping("explore", "general-purpose", "ref.md", AGENT),
    ]

    assert validate_trigger_targets(mappings, index) == []


def test_allow_listed_skill_cell_passes_full_validation(tmp_path: Path) -> None:
    table = tmp_path / "skills" / "helper-skill" / "references" / "triggers.md"
    table.parent.mkdir(parents=True)
    table.write_text("| Trigger | Skill |\n|---|---|\n| help | claude-code-guide |\n", encoding="utf-8")
    documents = [make_document("skills/helper-skill/SKILL.md", SKILL, "Helper.\n")]

    report = CrossFileValidator(documents).validate(root=tmp_path)

    assert [item for item in report.diagnostics if item.severity == "error"] == []


def test_undecodable_reference_files_are_skipped(tmp_path: Path) -> None:
    references = tmp_path / "skills" / "x" / "references"
    references.mkdir(parents=True)
    (references / "broken.md").write_bytes(b"| Trigger | Skill |\n| bad | \xff\xfe-skill |\n")
    (references / "map.md").write_text(
        "| Trigger | Skill |\n|---|---|\n| deploy | ghost-skill |\n", encoding="utf-8"
    )
    documents = [make_document("skills/x/SKILL.md", SKILL, "Skill x.\n")]

    files = load_reference_files(documents, tmp_path, ["skills/*/references/*.md"])
    report = CrossFileValidator(documents).validate(root=tmp_path)

    assert list(files) == ["skills/x/references/map.md"]
    assert [(item.file, item.subject) for item in report.diagnostics if item.severity == "error"] == [
        ("skills/x/references/map.md", "ghost-skill")
    ]
