"""Checks on how commands delegate: documented flags and declared tools."""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Set

from ..frontmatter import strip_frontmatter
from ..models import SEVERITY_INFO, SEVERITY_SUGGESTION, ComponentType, Diagnostic, Document, NodeKey
from .extractors import SKILL_PLAIN_PATTERN, task_targets
from .index import CorpusIndex, node_key

_FLAG_PATTERN = re.compile(r"--([a-z][a-z0-9-]*)")
_ROUTING_FLAG_PATTERN = re.compile(r"(?m)(?:`--([a-z][a-z0-9-]*)`\s*\||--([a-z][a-z0-9-]*)\s*:)")
_TASK_TOOL_PATTERN = re.compile(r"Task\([^)]+\)")

_DECLARATIVE_PHRASES = ("saved as", "write to", "output to", "save to")
_DECLARATIVE_SUFFIXES = (".md", ".json")


def _called(name: str) -> Callable[[str], bool]:
    return lambda body: f"{name}(" in body or f"{name} tool" in body


TOOL_USAGE_CHECKS: Dict[str, Callable[[str], bool]] = {
    "Task": lambda body: "Task(" in body,
    "Read": _called("Read"),
    "Write": _called("Write"),
    "Edit": _called("Edit"),
    "Bash": _called("Bash"),
    "Glob": _called("Glob"),
    "Grep": _called("Grep"),
}


def parse_allowed_tools(value: str) -> List[str]:
    """Split an ``allowed-tools`` string, keeping ``Task(name)`` entries intact."""
    tools: List[str] = []
    for tool in _TASK_TOOL_PATTERN.findall(value):
        if tool not in tools:
            tools.append(tool)
    for part in _TASK_TOOL_PATTERN.sub("", value).split(","):
        tool = part.strip()
        if tool and tool not in tools:
            tools.append(tool)
    return tools


def is_tool_used(tool: str, body: str) -> bool:
    if tool.startswith("Task(") and tool.endswith(")"):
        agent = re.escape(tool[5:-1].strip())
        return re.search(rf"Task\(\s*{agent}\s*[,)]", body) is not None
    check = TOOL_USAGE_CHECKS.get(tool)
    if check is not None:
        return check(body)
    return tool in body


def _is_declarative(body: str) -> bool:
    lowered = body.lower()
    return any(phrase in lowered for phrase in _DECLARATIVE_PHRASES) or any(
        suffix in body for suffix in _DECLARATIVE_SUFFIXES
    )


def unused_tool_message(tool: str, declarative: bool) -> str:
    if declarative and tool in {"Write", "Read"}:
        return (
            f"allowed-tools declares '{tool}' - consider making tool usage more explicit "
            "for LLM (e.g., 'Use Write tool to create...')"
        )
    if declarative:
        return f"allowed-tools declares '{tool}' without obvious invocation (consider making tool usage explicit)"
    return f"allowed-tools declares '{tool}' but it's never used in command body"


def check_unused_allowed_tools(command: Document) -> List[Diagnostic]:
    """Report tools named in a string ``allowed-tools`` value that the body never uses."""
    declared = command.frontmatter.get("allowed-tools")
    if not isinstance(declared, str):
        return []
    body = strip_frontmatter(command.raw_text)
    declarative = _is_declarative(body)
    return [
        Diagnostic(
            file=command.relative_path,
            message=unused_tool_message(tool, declarative),
            severity=SEVERITY_INFO,
            subject=tool,
        )
        for tool in parse_allowed_tools(declared)
        if not is_tool_used(tool, body)
    ]


def primary_agent(body: str, index: CorpusIndex) -> Optional[Document]:
    """The first ``Task()`` target of ``body`` that is an indexed agent."""
    for name in task_targets(body):
        document = index.lookup(NodeKey(ComponentType.AGENT, name))
        if document is not None:
            return document
    return None


def check_fake_flags(command: Document, index: CorpusIndex) -> List[Diagnostic]:
    """Flag ``--options`` a command documents that its delegate agent never mentions."""
    body = strip_frontmatter(command.raw_text)
    agent = primary_agent(body, index)
    if agent is None:
        return []

    searchable = [agent.raw_text]
    for match in SKILL_PLAIN_PATTERN.finditer(agent.raw_text):
        skill = index.lookup(NodeKey(ComponentType.SKILL, match.group(1)))
        if skill is not None:
            searchable.append(skill.raw_text)

    routing: Set[str] = {
        group for match in _ROUTING_FLAG_PATTERN.finditer(body) for group in match.groups() if group
    }
    agent_name = node_key(agent).name

    diagnostics: List[Diagnostic] = []
    seen: Set[str] = set()
    for match in _FLAG_PATTERN.finditer(body):
        flag = match.group(1)
        if flag in seen or flag in routing:
            continue
        seen.add(flag)
        if any(f"--{flag}" in text for text in searchable):
            continue
        diagnostics.append(
            Diagnostic(
                file=command.relative_path,
                message=f"Flag '--{flag}' documented but not found in agent '{agent_name}' or its skills - may be fake",
                severity=SEVERITY_SUGGESTION,
                subject=flag,
            )
        )
    return diagnostics


__all__ = [
    "TOOL_USAGE_CHECKS",
    "check_fake_flags",
    "check_unused_allowed_tools",
    "is_tool_used",
    "parse_allowed_tools",
    "primary_agent",
    "unused_tool_message",
]
