"""Tests for agentlint.frontmatter."""

from __future__ import annotations

import pytest

from agentlint.frontmatter import FrontmatterError, parse_frontmatter, strip_frontmatter


def test_parse_frontmatter_returns_mapping_and_body() -> None:
    text = "---\nname: reviewer\nskills: [code-review, lint-rules]\n---\n# Reviewer\n"

    data, body = parse_frontmatter(text)

    assert data == {"name": "reviewer", "skills": ["code-review", "lint-rules"]}
    assert body == "# Reviewer\n"


def test_document_without_fence_has_no_frontmatter() -> None:
    text = "# Title\n\nSkill: helper-skill\n"

    assert parse_frontmatter(text) == ({}, text)
    assert strip_frontmatter(text) == text


def test_unterminated_fence_is_treated_as_body() -> None:
    text = "---\nname: broken\n# no closing fence\n"

    assert parse_frontmatter(text) == ({}, text)


def test_empty_block_yields_empty_mapping() -> None:
    data, body = parse_frontmatter("---\n---\nbody\n")

    assert data == {}
    assert body == "body\n"


def test_byte_order_mark_is_ignored() -> None:
    data, _ = parse_frontmatter("\ufeff---\nagent: planner\n---\n")

    assert data == {"agent": "planner"}


def test_invalid_yaml_raises() -> None:
    with pytest.raises(FrontmatterError, match="Invalid YAML"):
        parse_frontmatter("---\nskills: [a, b\n---\n")


def test_non_mapping_raises() -> None:
    with pytest.raises(FrontmatterError, match="mapping"):
        parse_frontmatter("---\n- one\n- two\n---\n")


def test_strip_frontmatter_removes_block() -> None:
    assert strip_frontmatter("---\ntools: Task(x)\n---\nTask(y)\n") == "Task(y)\n"
