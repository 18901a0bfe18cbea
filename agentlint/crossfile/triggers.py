"""Trigger-table parsing, ghost-target checks and keyword conflict detection.

Skill reference files often carry a markdown table whose first column is a
trigger keyword and whose remaining columns route that keyword to a skill or to
an agent (``Task(name)``)::

    | Trigger | Route to |
    |---------|----------|
    | cache   | arch-cache-core |
    | deploy  | Task(release-specialist) |
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..logging import get_logger
from ..models import SEVERITY_ERROR, SEVERITY_WARNING, ComponentType, Diagnostic, Document
from .allowlist import DEFAULT_ALLOW_LIST, BuiltInAllowList
from .index import CorpusIndex

_LOGGER = get_logger("crossfile.triggers")

TRIGGER_HEADER_PATTERN = re.compile(r"(?im)^\|\s*Trigger[^|]*\|")
_SKILL_CELL_PATTERN = re.compile(r"\b([a-z][a-z0-9-]{2,})\b")
_TASK_CELL_PATTERN = re.compile(r"Task\(\s*`?([a-z0-9][a-z0-9-]*)`?\s*\)")
_REFERENCE_PATH_PATTERN = re.compile(r"references/[^\s)|]+")

_ROUTING_KEYWORDS = ("route", "skill", "agent", "target")
_SEPARATOR_CHARS = frozenset("|-: \t")


@dataclass(frozen=True)
class TriggerMapping:
    source_file: str
    keyword: str
    target: str
    target_kind: ComponentType


def is_trigger_map(contents: str) -> bool:
    return bool(TRIGGER_HEADER_PATTERN.search(contents))


def is_separator_row(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed.startswith("|"):
        return False
    return all(char in _SEPARATOR_CHARS for char in trimmed) and "-" in trimmed


def is_likely_skill_name(name: str) -> bool:
    return len(name) >= 4 and "-" in name


def identify_routing_columns(header_row: str) -> List[int]:
    """Return indices (into ``header_row.split("|")``) of the routing columns.

    Columns whose header mentions route/skill/agent/target are chosen. When none
    does, every column after the keyword column is treated as routing; tables
    with free-text columns can then yield spurious targets.
    """
    cells = header_row.split("|")
    if len(cells) < 3:
        return []
    candidates = range(2, len(cells) - 1)
    indices = [
        position
        for position in candidates
        if cells[position].strip()
        and any(keyword in cells[position].strip().lower() for keyword in _ROUTING_KEYWORDS)
    ]
    return indices or list(candidates)


def strip_reference_paths(cell: str) -> str:
    return _REFERENCE_PATH_PATTERN.sub("", cell)


def _row_targets(cells: Sequence[str], routing_columns: Sequence[int]) -> List[Tuple[ComponentType, str]]:
    if routing_columns:
        target_cells = [cells[position] for position in routing_columns if position < len(cells)]
    else:
        target_cells = list(cells[2:-1])

    seen: Set[Tuple[ComponentType, str]] = set()
    targets: List[Tuple[ComponentType, str]] = []

    def _add(kind: ComponentType, name: str) -> None:
        if (kind, name) not in seen:
            seen.add((kind, name))
            targets.append((kind, name))

    for raw_cell in target_cells:
        cell = raw_cell.strip()
        if not cell:
            continue
        agents = [match.group(1).strip() for match in _TASK_CELL_PATTERN.finditer(cell)]
        for name in agents:
            _add(ComponentType.AGENT, name)
        if agents:
            continue
        for match in _SKILL_CELL_PATTERN.finditer(strip_reference_paths(cell)):
            if is_likely_skill_name(match.group(1)):
                _add(ComponentType.SKILL, match.group(1))
    return targets


def parse_trigger_table(source_file: str, contents: str) -> List[TriggerMapping]:
    """Parse every trigger table in ``contents`` into keyword mappings.

    Rows with an empty keyword cell still produce mappings (with ``keyword=""``)
    so their targets are checked for existence.
    """
    mappings: List[TriggerMapping] = []
    header_found = False
    routing_columns: List[int] = []

    for raw_line in contents.split("\n"):
        line = raw_line.strip()
        if not line.startswith("|"):
            header_found = False
            routing_columns = []
            continue
        if not header_found:
            if TRIGGER_HEADER_PATTERN.match(line):
                header_found = True
                routing_columns = identify_routing_columns(line)
            continue
        if is_separator_row(line):
            continue

        cells = line.split("|")
        if len(cells) < 3:
            continue
        keyword = cells[1].strip().lower()
        for kind, name in _row_targets(cells, routing_columns):
            mappings.append(TriggerMapping(source_file, keyword, name, kind))
    return mappings


def load_reference_files(
    documents: Iterable[Document],
    root: Optional[Path] = None,
    globs: Sequence[str] = (),
) -> Dict[str, str]:
    """Collect reference file contents keyed by relative path.

    Corpus reference documents win over files found through ``globs`` under
    ``root``. Unreadable files are skipped.
    """
    files: Dict[str, str] = {}
    for document in documents:
        if document.component_type is ComponentType.REFERENCE:
            files[document.relative_path] = document.raw_text
    if root is None:
        return dict(sorted(files.items()))

    for pattern in globs:
        for path in sorted(root.glob(pattern)):
            relative = path.relative_to(root).as_posix()
            if relative in files or not path.is_file():
                continue
            try:
                files[relative] = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                _LOGGER.debug("Skipping unreadable reference file %s: %s", relative, exc)
    return dict(sorted(files.items()))


def collect_mappings(reference_files: Mapping[str, str]) -> List[TriggerMapping]:
    mappings: List[TriggerMapping] = []
    for relative_path, contents in reference_files.items():
        if is_trigger_map(contents):
            mappings.extend(parse_trigger_table(relative_path, contents))
    return mappings


def validate_trigger_targets(
    mappings: Iterable[TriggerMapping],
    index: CorpusIndex,
    allow_list: BuiltInAllowList = DEFAULT_ALLOW_LIST,
) -> List[Diagnostic]:
    """Report routing targets that name no existing skill or agent."""
    diagnostics: List[Diagnostic] = []
    seen: Set[Tuple[ComponentType, str, str]] = set()
    for mapping in mappings:
        key = (mapping.target_kind, mapping.target, mapping.source_file)
        if key in seen:
            continue
        seen.add(key)
        if mapping.target in allow_list:
            continue
        if mapping.target_kind is ComponentType.AGENT:
            if index.has(ComponentType.AGENT, mapping.target):
                continue
            create = f"agents/{mapping.target}.md"
        else:
            if index.has(ComponentType.SKILL, mapping.target):
                continue
            create = f"skills/{mapping.target}/SKILL.md"
        diagnostics.append(
            Diagnostic(
                file=mapping.source_file,
                message=(
                    f"Trigger map references non-existent {mapping.target_kind.value} "
                    f"'{mapping.target}'. Create {create}"
                ),
                severity=SEVERITY_ERROR,
                subject=mapping.target,
            )
        )
    return diagnostics


def detect_trigger_conflicts(mappings: Iterable[TriggerMapping]) -> List[Diagnostic]:
    """Warn once per keyword that routes to more than one distinct target."""
    by_keyword: Dict[str, Dict[Tuple[str, str], Set[str]]] = {}
    for mapping in mappings:
        if not mapping.keyword:
            continue
        targets = by_keyword.setdefault(mapping.keyword, {})
        targets.setdefault((mapping.target_kind.value, mapping.target), set()).add(mapping.source_file)

    diagnostics: List[Diagnostic] = []
    for keyword in sorted(by_keyword):
        targets = by_keyword[keyword]
        if len(targets) <= 1:
            continue
        ordered = sorted(
            ((kind, target, sorted(files)) for (kind, target), files in targets.items()),
            key=lambda entry: (entry[2][0], entry[1], entry[0]),
        )
        parts = [f"'{target}' ({kind}, in {', '.join(files)})" for kind, target, files in ordered]
        diagnostics.append(
            Diagnostic(
                file=min(files[0] for _, _, files in ordered),
                message=f"Trigger keyword '{keyword}' routes to conflicting targets: {'; '.join(parts)}",
                severity=SEVERITY_WARNING,
                subject=keyword,
            )
        )
    return diagnostics


__all__ = [
    "TRIGGER_HEADER_PATTERN",
    "TriggerMapping",
    "collect_mappings",
    "detect_trigger_conflicts",
    "identify_routing_columns",
    "is_likely_skill_name",
    "is_separator_row",
    "is_trigger_map",
    "load_reference_files",
    "parse_trigger_table",
    "strip_reference_paths",
    "validate_trigger_targets",
]
