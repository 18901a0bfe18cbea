"""YAML frontmatter extraction for markdown documents."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import yaml

_DELIMITER = "---"


class FrontmatterError(ValueError):
    """Raised when a document's frontmatter block is not a valid YAML mapping."""


def _split(text: str) -> Tuple[Optional[str], str]:
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].strip() != _DELIMITER:
        return None, text
    for index in range(1, len(lines)):
        if lines[index].strip() == _DELIMITER:
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    return None, text


def parse_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split ``text`` into its frontmatter mapping and the remaining body.

    Documents without a leading ``---`` fence, or with an unterminated fence,
    have no frontmatter and are returned unchanged as the body.
    """
    block, body = _split(text)
    if block is None or not block.strip():
        return {}, body

    try:
        loaded = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid YAML frontmatter: {exc}") from exc

    if loaded is None:
        return {}, body
    if not isinstance(loaded, dict):
        raise FrontmatterError("Frontmatter must be a YAML mapping")
    return {str(key): value for key, value in loaded.items()}, body


def strip_frontmatter(text: str) -> str:
    """Return ``text`` without its leading frontmatter block, if any."""
    return _split(text)[1]


__all__ = ["FrontmatterError", "parse_frontmatter", "strip_frontmatter"]
