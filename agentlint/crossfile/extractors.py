"""Reference extraction from document bodies and frontmatter.

Every extractor is a data-described :class:`ExtractionRule`. Rules are applied in
priority order (most specific first); a text span captured by a higher priority
rule is never reused by a lower priority one, and each ``(type, name)`` target is
reported once per document in first-seen order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Iterable, Iterator, List, Optional, Pattern, Sequence, Set, Tuple

from ..frontmatter import strip_frontmatter
from ..models import ComponentType, Document, NodeKey
from .index import node_key

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_DYNAMIC_MARKERS = (".", "[", "]", "{", "}", "$", "=", "subagent_type")

# Task(name), Task("name"), Task( 'name' , prompt=...)
TASK_CALL_PATTERN = re.compile(r"Task\(\s*[\"'`]?([^\s,)\"'`]+)[\"'`]?\s*[,)]")

# Skill: name at line start, outside bold markers
SKILL_PLAIN_PATTERN = re.compile(r"(?m)^[^*\n]*\bSkill:[ \t]*([a-z0-9][a-z0-9-]*)")

# List items count only when they look like identifiers: `back-ticked` or a
# hyphenated word of at least four characters.
_SKILL_LIST_ITEM = re.compile(
    r"(?m)^[ \t]*[-*][ \t]+"
    r"(?:`(?=[a-z0-9][a-z0-9-]*`)|(?=[a-z0-9-]{4})(?=[a-z0-9]+-[a-z0-9-]*(?![A-Za-z0-9_-])))"
    r"([a-z0-9][a-z0-9-]*)"
)

_BODY_TYPES = frozenset(
    {ComponentType.AGENT, ComponentType.COMMAND, ComponentType.SKILL, ComponentType.RULE}
)
_TASK_TYPES = frozenset({ComponentType.AGENT, ComponentType.COMMAND, ComponentType.RULE, ComponentType.SKILL})
_SKILL_ONLY = frozenset({ComponentType.SKILL})


class MentionKind(str, Enum):
    """Syntactic form that produced a mention."""

    INLINE_MARKER = "inline_marker"
    FUNCTION_CALL = "function_call"
    FRONTMATTER = "frontmatter"
    ROUTING_CELL = "routing_cell"
    PROSE = "prose"


@dataclass(frozen=True)
class ReferenceMention:
    """An unresolved, typed reference from one document to another component."""

    source: NodeKey
    source_path: str
    target: NodeKey
    kind: MentionKind
    origin: str

    @property
    def dedupe_key(self) -> Tuple[str, ComponentType, str]:
        return (self.source_path, self.target.component_type, self.target.name)


@dataclass(frozen=True)
class ExtractionRule:
    """A single body pattern producing mentions of ``target_type``.

    When ``item_pattern`` is set, group 1 of ``pattern`` is a block whose items
    are matched individually (used for markdown lists).
    """

    origin: str
    pattern: Pattern[str]
    target_type: ComponentType
    kind: MentionKind
    priority: int
    applies_to: FrozenSet[ComponentType]
    item_pattern: Optional[Pattern[str]] = None

    def iter_names(self, text: str) -> Iterator[Tuple[str, int, int]]:
        """Yield ``(name, start, end)`` for every candidate captured in ``text``."""
        for match in self.pattern.finditer(text):
            start, end = match.span(1)
            if self.item_pattern is None:
                yield match.group(1).strip(), start, end
                continue
            for item in self.item_pattern.finditer(match.group(1)):
                yield item.group(1), start + item.start(1), start + item.end(1)


@dataclass(frozen=True)
class FrontmatterRule:
    """Frontmatter field whose values name components of ``target_type``.

    With ``call_pattern`` set, values are scanned for function-call mentions
    instead of being treated as bare names.
    """

    field: str
    origin: str
    target_type: ComponentType
    applies_to: FrozenSet[ComponentType]
    call_pattern: Optional[Pattern[str]] = None


BODY_RULES: Tuple[ExtractionRule, ...] = tuple(
    sorted(
        (
            ExtractionRule("Skill:", SKILL_PLAIN_PATTERN, ComponentType.SKILL, MentionKind.INLINE_MARKER, 10, _BODY_TYPES),
            ExtractionRule(
                "**Skill**:",
                re.compile(r"\*\*Skill\*\*:[ \t]*([a-z0-9][a-z0-9-]*)"),
                ComponentType.SKILL,
                MentionKind.INLINE_MARKER,
                11,
                _BODY_TYPES,
            ),
            ExtractionRule(
                "Skill()",
                re.compile(r"Skill\(\s*[\"']?([a-z0-9][a-z0-9-]*)[\"']?\s*\)"),
                ComponentType.SKILL,
                MentionKind.FUNCTION_CALL,
                12,
                _BODY_TYPES,
            ),
            ExtractionRule(
                "Skills list",
                re.compile(r"(?m)\bSkills?:[ \t]*\n((?:[ \t]*[-*][ \t]+[^\n]*(?:\n|$))+)"),
                ComponentType.SKILL,
                MentionKind.INLINE_MARKER,
                13,
                _BODY_TYPES,
                item_pattern=_SKILL_LIST_ITEM,
            ),
            ExtractionRule(
                "delegate to",
                re.compile(r"\bdelegate to\s+([a-z0-9][a-z0-9-]*-specialist)"),
                ComponentType.AGENT,
                MentionKind.INLINE_MARKER,
                20,
                _SKILL_ONLY,
            ),
            ExtractionRule(
                "use",
                re.compile(r"\buse\s+([a-z0-9][a-z0-9-]*-specialist)"),
                ComponentType.AGENT,
                MentionKind.INLINE_MARKER,
                21,
                _SKILL_ONLY,
            ),
            ExtractionRule(
                "see",
                re.compile(r"\bsee\s+([a-z0-9][a-z0-9-]*-specialist)"),
                ComponentType.AGENT,
                MentionKind.INLINE_MARKER,
                22,
                _SKILL_ONLY,
            ),
            ExtractionRule(
                "Task()",
                re.compile(r"Task\(([a-z0-9][a-z0-9-]*-specialist)"),
                ComponentType.AGENT,
                MentionKind.FUNCTION_CALL,
                23,
                _SKILL_ONLY,
            ),
            ExtractionRule("Task()", TASK_CALL_PATTERN, ComponentType.AGENT, MentionKind.FUNCTION_CALL, 24, _TASK_TYPES),
            ExtractionRule(
                "delegate via",
                re.compile(r"\bdelegate via\s+([a-z0-9][a-z0-9-]*)"),
                ComponentType.AGENT,
                MentionKind.INLINE_MARKER,
                25,
                _SKILL_ONLY,
            ),
            ExtractionRule(
                "handles",
                re.compile(r"\b([a-z0-9][a-z0-9-]*-agent)\s+handles"),
                ComponentType.AGENT,
                MentionKind.INLINE_MARKER,
                26,
                _SKILL_ONLY,
            ),
        ),
        key=lambda rule: rule.priority,
    )
)

FRONTMATTER_RULES: Tuple[FrontmatterRule, ...] = (
    FrontmatterRule("skills", "Frontmatter skills", ComponentType.SKILL, frozenset({ComponentType.AGENT})),
    FrontmatterRule(
        "tools",
        "tools field Task()",
        ComponentType.AGENT,
        frozenset({ComponentType.AGENT}),
        call_pattern=TASK_CALL_PATTERN,
    ),
    FrontmatterRule(
        "allowed-tools",
        "allowed-tools Task()",
        ComponentType.AGENT,
        frozenset({ComponentType.AGENT, ComponentType.COMMAND, ComponentType.SKILL}),
        call_pattern=TASK_CALL_PATTERN,
    ),
    FrontmatterRule("agent", "Frontmatter agent field", ComponentType.AGENT, _SKILL_ONLY),
)


def string_or_array(value: Any) -> List[str]:
    """Normalize a frontmatter value that may be a string or a list of strings.

    ``"a, b"`` and ``["a", "b"]`` both become ``["a", "b"]``; anything else is empty.
    """
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []
    result: List[str] = []
    for item in items:
        if not isinstance(item, str):
            continue
        cleaned = item.strip().strip("\"'`").strip()
        if cleaned:
            result.append(cleaned)
    return result


def is_dynamic(name: str) -> bool:
    """Return True when ``name`` looks like variable interpolation rather than a literal."""
    return any(marker in name for marker in _DYNAMIC_MARKERS)


def _is_literal_name(name: str) -> bool:
    return bool(name) and not is_dynamic(name) and bool(_NAME_PATTERN.match(name))


def _touches_interpolation(text: str, start: int, end: int) -> bool:
    before = text[start - 1] if start > 0 else ""
    after = text[end] if end < len(text) else ""
    if before in {"$", "{"} or after in {"[", "{"}:
        return True
    if after == "." and end + 1 < len(text):
        following = text[end + 1]
        return following.isalnum() or following == "_"
    return False


def _overlaps(span: Tuple[int, int], claimed: Sequence[Tuple[int, int]]) -> bool:
    start, end = span
    return any(start < other_end and other_start < end for other_start, other_end in claimed)


def task_targets(text: str) -> List[str]:
    """Return literal ``Task(name)`` targets in first-seen order."""
    names: List[str] = []
    for match in TASK_CALL_PATTERN.finditer(text):
        name = match.group(1)
        if _is_literal_name(name) and not _touches_interpolation(text, *match.span(1)) and name not in names:
            names.append(name)
    return names


def extract_mentions(document: Document) -> List[ReferenceMention]:
    """Extract every typed reference mention from ``document``.

    Pure function of the document; safe to call concurrently across documents.
    """
    if document.component_type not in _BODY_TYPES:
        return []
    source = node_key(document)
    if not source.name:
        return []

    mentions: List[ReferenceMention] = []
    seen: Set[Tuple[ComponentType, str]] = set()

    def _emit(name: str, target_type: ComponentType, kind: MentionKind, origin: str) -> None:
        key = (target_type, name)
        if key in seen:
            return
        seen.add(key)
        mentions.append(
            ReferenceMention(
                source=source,
                source_path=document.relative_path,
                target=NodeKey(target_type, name),
                kind=kind,
                origin=origin,
            )
        )

    for fm_rule in FRONTMATTER_RULES:
        if document.component_type not in fm_rule.applies_to:
            continue
        for value in string_or_array(document.frontmatter.get(fm_rule.field)):
            if fm_rule.call_pattern is None:
                if _is_literal_name(value):
                    _emit(value, fm_rule.target_type, MentionKind.FRONTMATTER, fm_rule.origin)
                continue
            for name in task_targets(value):
                _emit(name, fm_rule.target_type, MentionKind.FRONTMATTER, fm_rule.origin)

    body = strip_frontmatter(document.raw_text)
    claimed: List[Tuple[int, int]] = []
    for rule in BODY_RULES:
        if document.component_type not in rule.applies_to:
            continue
        for name, start, end in rule.iter_names(body):
            if _overlaps((start, end), claimed):
                continue
            if not _is_literal_name(name) or _touches_interpolation(body, start, end):
                continue
            claimed.append((start, end))
            _emit(name, rule.target_type, rule.kind, rule.origin)

    return mentions


def extract_prose_skill_mentions(document: Document, skill_names: Iterable[str]) -> List[ReferenceMention]:
    """Return plain-substring mentions of other skills inside a skill document."""
    if document.component_type is not ComponentType.SKILL:
        return []
    source = node_key(document)
    mentions: List[ReferenceMention] = []
    for name in sorted(set(skill_names)):
        if name == source.name or name not in document.raw_text:
            continue
        mentions.append(
            ReferenceMention(
                source=source,
                source_path=document.relative_path,
                target=NodeKey(ComponentType.SKILL, name),
                kind=MentionKind.PROSE,
                origin="prose",
            )
        )
    return mentions


def dedupe_mentions(mentions: Iterable[ReferenceMention]) -> List[ReferenceMention]:
    """Drop repeated ``(source, target type, target name)`` mentions, keeping the first."""
    seen: Set[Tuple[str, ComponentType, str]] = set()
    unique: List[ReferenceMention] = []
    for mention in mentions:
        if mention.dedupe_key in seen:
            continue
        seen.add(mention.dedupe_key)
        unique.append(mention)
    return unique


__all__ = [
    "BODY_RULES",
    "FRONTMATTER_RULES",
    "ExtractionRule",
    "FrontmatterRule",
    "MentionKind",
    "ReferenceMention",
    "SKILL_PLAIN_PATTERN",
    "TASK_CALL_PATTERN",
    "dedupe_mentions",
    "extract_mentions",
    "extract_prose_skill_mentions",
    "is_dynamic",
    "string_or_array",
    "task_targets",
]
