"""Tests for agentlint.crossfile.skillrefs."""

from __future__ import annotations

from agentlint.crossfile.skillrefs import actual_references, mentioned_references, validate_skill_references
from agentlint.models import ComponentType
from tests._fixtures.corpus_builder import CorpusBuilder, make_document


def test_mentioned_references_are_unique_and_sorted() -> None:
    text = "See references/zeta.md, references/alpha.md and references/zeta.md. Not references/../x.md"

    assert mentioned_references(text) == ["alpha.md", "zeta.md"]


def test_actual_references_only_direct_children() -> None:
    skill = make_document("skills/api/SKILL.md", ComponentType.SKILL, "x\n")
    documents = [
        make_document("skills/api/references/guide.md", ComponentType.REFERENCE, "g\n"),
        make_document("skills/other/references/guide2.md", ComponentType.REFERENCE, "o\n"),
    ]

    assert actual_references(skill, documents) == ["guide.md"]


def test_phantom_and_unmentioned_reference_files(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "skills/api/SKILL.md": "Read references/guide.md then references/missing.md.\n",
            "skills/api/references/guide.md": "guide\n",
            "skills/api/references/extra.md": "extra\n",
        }
    )

    diagnostics = validate_skill_references(corpus_builder.scan().documents)

    assert [(item.file, item.severity, item.message) for item in diagnostics] == [
        (
            "skills/api/SKILL.md",
            "error",
            "references/missing.md is mentioned but does not exist on disk",
        ),
        (
            "skills/api/references/extra.md",
            "info",
            "references/extra.md exists but is not mentioned in SKILL.md - add a reference or remove the file",
        ),
    ]


def test_skill_without_references_is_clean() -> None:
    skill = make_document("skills/api/SKILL.md", ComponentType.SKILL, "No references here.\n")

    assert validate_skill_references([skill]) == []
