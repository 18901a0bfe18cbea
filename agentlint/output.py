"""Rendering of lint outcomes as console text, JSON or markdown."""

from __future__ import annotations

import json
from collections import Counter
from itertools import groupby
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List

from jinja2 import Environment, FileSystemLoader

from . import __version__
from .crossfile.graph import format_cycle
from .models import SEVERITIES, Diagnostic

if TYPE_CHECKING:
    from .orchestrator import LintOutcome

TOOL_NAME = "agentlint"


def summarize(diagnostics: List[Diagnostic]) -> Dict[str, int]:
    counts = Counter(diagnostic.severity for diagnostic in diagnostics)
    summary = {severity: counts.get(severity, 0) for severity in SEVERITIES}
    summary["total"] = len(diagnostics)
    return summary


def _summary_line(summary: Dict[str, int], suppressed: int) -> str:
    if not summary["total"]:
        line = "No issues found."
    else:
        line = (
            f"{summary['error']} error(s), {summary['warning']} warning(s), "
            f"{summary['suggestion']} suggestion(s), {summary['info']} info"
        )
    if suppressed:
        line += f" ({suppressed} suppressed by baseline)"
    return line


class ReportRenderer:
    """Formats a :class:`~agentlint.orchestrator.LintOutcome` for display."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = [str(templates_dir)] if templates_dir else []
        directories.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, outcome: "LintOutcome", fmt: str = "console") -> str:
        if fmt == "json":
            return self.render_json(outcome)
        if fmt == "markdown":
            return self.render_markdown(outcome)
        return self.render_console(outcome)

    def render_console(self, outcome: "LintOutcome") -> str:
        lines: List[str] = []
        for file, items in groupby(outcome.diagnostics, key=lambda diagnostic: diagnostic.file):
            lines.append(file)
            for diagnostic in items:
                lines.append(f"  {diagnostic.severity}: {diagnostic.message}")
            lines.append("")
        lines.append(_summary_line(summarize(outcome.diagnostics), outcome.suppressed))
        return "\n".join(lines) + "\n"

    def render_json(self, outcome: "LintOutcome") -> str:
        summary = summarize(outcome.diagnostics)
        summary["suppressed"] = outcome.suppressed
        summary["cycles"] = len(outcome.cycles)
        payload: Dict[str, Any] = {
            "tool": TOOL_NAME,
            "version": __version__,
            "summary": summary,
            "diagnostics": [diagnostic.to_dict() for diagnostic in outcome.diagnostics],
            "cycles": [
                {
                    "nodes": [str(node) for node in cycle.nodes],
                    "length": len(cycle),
                    "signature": cycle.signature,
                    "path": format_cycle(cycle),
                }
                for cycle in outcome.cycles
            ],
        }
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    def render_markdown(self, outcome: "LintOutcome") -> str:
        template = self._env.get_template("report.md.j2")
        grouped = [
            (file, list(items))
            for file, items in groupby(outcome.diagnostics, key=lambda diagnostic: diagnostic.file)
        ]
        return template.render(
            tool=TOOL_NAME,
            version=__version__,
            grouped=grouped,
            cycles=[format_cycle(cycle) for cycle in outcome.cycles],
            summary=summarize(outcome.diagnostics),
            summary_line=_summary_line(summarize(outcome.diagnostics), outcome.suppressed),
        )


__all__ = ["ReportRenderer", "TOOL_NAME", "summarize"]
