"""Pipeline orchestration for lint, explain and cycle runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .baseline import DEFAULT_BASELINE_FILENAME, Baseline, filter_known
from .config import LintConfig, load_config
from .corpus_scanner import CorpusScanner
from .crossfile import BuiltInAllowList, ChainLink, CrossFileValidator, Cycle, DEFAULT_ALLOW_LIST
from .logging import get_logger
from .models import (
    SEVERITY_ERROR,
    SEVERITY_SUGGESTION,
    SEVERITY_WARNING,
    ComponentType,
    Corpus,
    Diagnostic,
    sort_diagnostics,
)
from .output import ReportRenderer

_SEVERITY_RANK = {SEVERITY_ERROR: 0, SEVERITY_WARNING: 1, SEVERITY_SUGGESTION: 2}


def meets_threshold(severity: str, fail_on: str) -> bool:
    """Return True when ``severity`` is at least as serious as ``fail_on``."""
    rank = _SEVERITY_RANK.get(severity)
    return rank is not None and rank <= _SEVERITY_RANK.get(fail_on, 0)


@dataclass
class LintOutcome:
    """Result of a lint run after baseline filtering."""

    diagnostics: List[Diagnostic]
    cycles: List[Cycle] = field(default_factory=list)
    suppressed: int = 0
    exit_code: int = 0
    baseline_written: Optional[Path] = None


class Orchestrator:
    """Coordinates discovery, cross-file validation and reporting."""

    def __init__(
        self,
        scanner: CorpusScanner | None = None,
        renderer: ReportRenderer | None = None,
        allow_list: BuiltInAllowList = DEFAULT_ALLOW_LIST,
    ) -> None:
        self.scanner = scanner or CorpusScanner()
        self.renderer = renderer or ReportRenderer()
        self.allow_list = allow_list
        self.logger = get_logger("orchestrator")

    def run_lint(
        self,
        path: str | Path,
        *,
        fail_on: str | None = None,
        baseline_path: Path | None = None,
        update_baseline: bool = False,
        cycle_check: bool = True,
        workers: int | None = None,
    ) -> LintOutcome:
        """Lint the corpus at ``path`` and compute the exit status."""
        config, corpus = self._load(path)
        if not cycle_check:
            config.checks.cycles = False

        validator = self._validator(config, corpus, workers)
        report = validator.validate(root=corpus.root)
        diagnostics = sort_diagnostics([*corpus.diagnostics, *report.diagnostics])

        baseline_file = baseline_path or config.baseline
        if baseline_file is None:
            default_file = corpus.root / DEFAULT_BASELINE_FILENAME
            if update_baseline or default_file.exists():
                baseline_file = default_file
        written: Optional[Path] = None
        baseline: Optional[Baseline] = None
        if baseline_file is not None and update_baseline:
            baseline = Baseline.create(diagnostics)
            baseline.save(baseline_file)
            written = baseline_file
            self.logger.info("Wrote %d fingerprint(s) to %s", len(baseline), baseline_file)
        elif baseline_file is not None and baseline_file.exists():
            baseline = Baseline.load(baseline_file)

        remaining, suppressed = filter_known(diagnostics, baseline)
        threshold = fail_on or config.output.fail_on
        exit_code = 1 if any(meets_threshold(item.severity, threshold) for item in remaining) else 0
        self.logger.debug(
            "Lint finished: %d diagnostic(s), %d suppressed, exit code %d",
            len(remaining),
            suppressed,
            exit_code,
        )
        return LintOutcome(
            diagnostics=remaining,
            cycles=report.cycles,
            suppressed=suppressed,
            exit_code=exit_code,
            baseline_written=written,
        )

    def run_explain(self, path: str | Path, component_type: ComponentType, name: str) -> Optional[ChainLink]:
        """Trace the delegation chain starting at ``component_type``/``name``."""
        config, corpus = self._load(path)
        return self._validator(config, corpus).trace(component_type, name)

    def run_cycles(self, path: str | Path) -> List[Cycle]:
        config, corpus = self._load(path)
        return self._validator(config, corpus).detect_cycles()

    def render(self, outcome: LintOutcome, fmt: str) -> str:
        return self.renderer.render(outcome, fmt)

    def _load(self, path: str | Path) -> tuple[LintConfig, Corpus]:
        root = Path(path).expanduser().resolve()
        self.logger.info("Linting corpus at %s", root)
        corpus = self.scanner.scan(root)
        config = load_config(corpus.root)
        self.logger.debug("Scanner discovered %d document(s)", len(corpus.documents))
        return config, corpus

    def _validator(self, config: LintConfig, corpus: Corpus, workers: int | None = None) -> CrossFileValidator:
        return CrossFileValidator(
            corpus.documents,
            allow_list=self.allow_list.extended(config.builtin_types),
            options=config.checks,
            workers=workers or config.workers,
            reference_globs=config.reference_globs,
        )


__all__ = ["LintOutcome", "Orchestrator", "meets_threshold"]
