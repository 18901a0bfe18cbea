"""Runtime-provided names that never need a backing document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable

DEFAULT_BUILTIN_NAMES: FrozenSet[str] = frozenset(
    {
        # Built-in subagent types
        "general-purpose",
        "statusline-setup",
        "Explore",
        "Plan",
        "claude-code-guide",
        # Model names accepted by Task() for model selection
        "haiku",
        "sonnet",
        "opus",
    }
)


@dataclass(frozen=True)
class BuiltInAllowList:
    """Immutable set of target names exempt from dangling-reference checks."""

    names: FrozenSet[str] = DEFAULT_BUILTIN_NAMES

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def extended(self, extra: Iterable[str]) -> "BuiltInAllowList":
        """Return a new allow-list that also accepts ``extra`` names."""
        return BuiltInAllowList(names=self.names | frozenset(extra))


DEFAULT_ALLOW_LIST = BuiltInAllowList()

__all__ = ["BuiltInAllowList", "DEFAULT_ALLOW_LIST", "DEFAULT_BUILTIN_NAMES"]
