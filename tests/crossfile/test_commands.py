"""Tests for agentlint.crossfile.commands."""

from __future__ import annotations

import pytest

from agentlint.crossfile.commands import (
    check_fake_flags,
    check_unused_allowed_tools,
    is_tool_used,
    parse_allowed_tools,
)
from agentlint.crossfile.index import CorpusIndex
from agentlint.models import ComponentType
from tests._fixtures.corpus_builder import make_document


def _index() -> CorpusIndex:
    return CorpusIndex.build(
        [
            make_document("agents/deployer.md", ComponentType.AGENT, "Supports --dry-run.\nSkill: release-notes\n"),
            make_document("skills/release-notes/SKILL.md", ComponentType.SKILL, "Pass --notes to include notes.\n"),
        ]
    )


def test_fake_flags_are_suggestions() -> None:
    command = make_document(
        "commands/ship.md",
        ComponentType.COMMAND,
        """
        Use Task(deployer) with --dry-run, --notes or --force.

        | Flag | Action |
        |------|--------|
        | `--mode` | choose mode |
        """,
    )

    diagnostics = check_fake_flags(command, _index())

    assert [(item.severity, item.message) for item in diagnostics] == [
        (
            "suggestion",
            "Flag '--force' documented but not found in agent 'deployer' or its skills - may be fake",
        )
    ]


def test_fake_flags_need_a_resolvable_agent() -> None:
    command = make_document("commands/ship.md", ComponentType.COMMAND, "Task(unknown) --force\n")

    assert check_fake_flags(command, _index()) == []


def test_routing_label_flags_are_skipped() -> None:
    command = make_document("commands/ship.md", ComponentType.COMMAND, "Task(deployer)\n--quick: run fast\n")

    assert check_fake_flags(command, _index()) == []


def test_parse_allowed_tools_keeps_task_entries() -> None:
    assert parse_allowed_tools("Task(helper), Read, Task(helper), Grep") == ["Task(helper)", "Read", "Grep"]


@pytest.mark.parametrize(
    ("tool", "body", "expected"),
    [
        ("Task(helper)", "call Task( helper, prompt)", True),
        ("Task(helper)", "call Task(other)", False),
        ("Read", "Use the Read tool", True),
        ("Bash", "Run Bash(ls)", True),
        ("Grep", "search things", False),
        ("WebFetch", "uses WebFetch to download", True),
    ],
)
def test_is_tool_used(tool: str, body: str, expected: bool) -> None:
    assert is_tool_used(tool, body) is expected


def test_unused_allowed_tools_plain_body() -> None:
    command = make_document(
        "commands/run.md",
        ComponentType.COMMAND,
        "---\nallowed-tools: Read, Bash, Task(deployer)\n---\nRun Task(deployer) now.\n",
        frontmatter={"allowed-tools": "Read, Bash, Task(deployer)"},
    )

    diagnostics = check_unused_allowed_tools(command)

    assert [item.message for item in diagnostics] == [
        "allowed-tools declares 'Read' but it's never used in command body",
        "allowed-tools declares 'Bash' but it's never used in command body",
    ]
    assert {item.severity for item in diagnostics} == {"info"}


def test_unused_allowed_tools_declarative_body() -> None:
    command = make_document(
        "commands/report.md",
        ComponentType.COMMAND,
        "The summary is saved as report.json.\n",
        frontmatter={"allowed-tools": "Write, Bash"},
    )

    messages = [item.message for item in check_unused_allowed_tools(command)]

    assert messages == [
        "allowed-tools declares 'Write' - consider making tool usage more explicit for LLM "
        "(e.g., 'Use Write tool to create...')",
        "allowed-tools declares 'Bash' without obvious invocation (consider making tool usage explicit)",
    ]


def test_list_valued_allowed_tools_are_not_checked() -> None:
    command = make_document(
        "commands/run.md", ComponentType.COMMAND, "body\n", frontmatter={"allowed-tools": ["Read"]}
    )

    assert check_unused_allowed_tools(command) == []
