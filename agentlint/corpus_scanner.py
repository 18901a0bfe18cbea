"""Corpus discovery: walks a directory and loads agent, command, skill and rule documents."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Sequence

from .config import CONFIG_FILENAME, ConfigError, load_config
from .frontmatter import FrontmatterError, parse_frontmatter
from .logging import get_logger
from .models import SEVERITY_ERROR, ComponentType, Corpus, Diagnostic, Document

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".idea",
}

_PREFIX = r"^(?:\.claude/)?"

_TYPE_RULES: tuple[tuple[Pattern[str], ComponentType], ...] = (
    (re.compile(_PREFIX + r"skills/[^/]+/SKILL\.md$"), ComponentType.SKILL),
    (re.compile(_PREFIX + r"skills/[^/]+/references/[^/]+\.md$"), ComponentType.REFERENCE),
    (re.compile(_PREFIX + r"agents/.+\.md$"), ComponentType.AGENT),
    (re.compile(_PREFIX + r"commands/.+\.md$"), ComponentType.COMMAND),
    (re.compile(_PREFIX + r"rules/.+\.md$"), ComponentType.RULE),
)


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .agentlint.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _parse_config_excludes(path: Path) -> List[IgnoreRule]:
    try:
        config = load_config(path)
    except ConfigError:
        return []
    return _rules_from_patterns(config.exclude_paths)


def _rules_from_patterns(patterns: Iterable[str]) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for pattern in patterns:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_files(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        dirnames[:] = [
            name
            for name in dirnames
            if name not in _EXCLUDED_DIRS
            and not _should_ignore(f"{rel_dir}/{name}" if rel_dir else name, True, rules)
        ]

        for filename in filenames:
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


def detect_component_type(relative_path: str) -> Optional[ComponentType]:
    """Classify a POSIX relative path, or return ``None`` for non-corpus files."""
    for pattern, component_type in _TYPE_RULES:
        if pattern.match(relative_path):
            return component_type
    return None


class CorpusScanner:
    """Walks a corpus root and loads every recognised document."""

    def __init__(self, exclude_paths: Sequence[str] = ()) -> None:
        self.exclude_paths = list(exclude_paths)
        self.logger = get_logger("scanner")

    def scan(self, root: str | Path) -> Corpus:
        """Return the documents under ``root`` sorted by relative path."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Corpus path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Corpus path is not a directory: {root}")

        rules = _parse_gitignore(root_path / ".gitignore")
        rules.extend(_parse_config_excludes(root_path / CONFIG_FILENAME))
        rules.extend(_rules_from_patterns(self.exclude_paths))

        documents: List[Document] = []
        diagnostics: List[Diagnostic] = []
        for path in _iter_files(root_path, rules):
            rel_path = path.relative_to(root_path).as_posix()
            component_type = detect_component_type(rel_path)
            if component_type is None:
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                diagnostics.append(
                    Diagnostic(file=rel_path, message=f"Unable to read file: {exc}", severity=SEVERITY_ERROR)
                )
                continue

            try:
                frontmatter, _ = parse_frontmatter(text)
            except FrontmatterError as exc:
                diagnostics.append(Diagnostic(file=rel_path, message=str(exc), severity=SEVERITY_ERROR))
                frontmatter = {}

            documents.append(
                Document(
                    path=path,
                    relative_path=rel_path,
                    component_type=component_type,
                    raw_text=text,
                    frontmatter=frontmatter,
                )
            )

        documents.sort(key=lambda document: document.relative_path)
        self.logger.debug("Discovered %d document(s) under %s", len(documents), root_path)
        return Corpus(root=root_path, documents=documents, diagnostics=diagnostics)


__all__ = ["CorpusScanner", "IgnoreRule", "detect_component_type"]
