"""CLI entrypoints for agentlint commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .baseline import DEFAULT_BASELINE_FILENAME, BaselineError
from .config import FAIL_ON_LEVELS, OUTPUT_FORMATS, ConfigError, load_config
from .crossfile import format_chain, format_cycle
from .logging import configure_logging
from .models import ComponentType
from .orchestrator import Orchestrator


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug logs to this file.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the corpus root (defaults to current directory).",
    )


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentlint",
        description="Validate cross-file references between agents, commands, skills and rules.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    lint_parser = subparsers.add_parser("lint", help="Lint every document in a corpus.")
    _add_verbose_option(lint_parser, suppress_default=True)
    _add_log_file_option(lint_parser, suppress_default=True)
    _add_path_argument(lint_parser)
    lint_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Report format (defaults to output.format from .agentlint.yml).",
    )
    lint_parser.add_argument("--output", type=Path, default=None, help="Write the report to a file.")
    lint_parser.add_argument(
        "--fail-on",
        choices=FAIL_ON_LEVELS,
        default=None,
        help="Lowest severity that produces a non-zero exit status.",
    )
    lint_parser.add_argument(
        "--baseline",
        type=Path,
        default=None,
        help=f"Baseline file of accepted findings (e.g. {DEFAULT_BASELINE_FILENAME}).",
    )
    lint_parser.add_argument(
        "--update-baseline",
        action="store_true",
        help="Record every current finding in the baseline file.",
    )
    lint_parser.add_argument("--no-cycle-check", action="store_true", help="Skip reference cycle detection.")
    lint_parser.add_argument(
        "--workers", type=_positive_int, default=None, help="Threads used for reference extraction."
    )

    explain_parser = subparsers.add_parser("explain", help="Show the delegation chain of a component.")
    _add_verbose_option(explain_parser, suppress_default=True)
    _add_log_file_option(explain_parser, suppress_default=True)
    explain_parser.add_argument("type", choices=[item.value for item in ComponentType], help="Component type.")
    explain_parser.add_argument("name", help="Canonical component name.")
    _add_path_argument(explain_parser)

    cycles_parser = subparsers.add_parser("cycles", help="List reference cycles in a corpus.")
    _add_verbose_option(cycles_parser, suppress_default=True)
    _add_log_file_option(cycles_parser, suppress_default=True)
    _add_path_argument(cycles_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_log_file_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for agentlint commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return

    orchestrator = Orchestrator()
    try:
        if args.command == "lint":
            _run_lint(parser, orchestrator, args)
        elif args.command == "explain":
            chain = orchestrator.run_explain(args.path, ComponentType(args.type), args.name)
            if chain is None:
                parser.exit(1, f"No {args.type} named '{args.name}' found in {args.path}\n")
            print(format_chain(chain))
        elif args.command == "cycles":
            cycles = orchestrator.run_cycles(args.path)
            if not cycles:
                print("No reference cycles found.")
            for cycle in cycles:
                print(f"{format_cycle(cycle)}  [{cycle.signature}]")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(2, "Unknown command\n")
    except (FileNotFoundError, NotADirectoryError, ConfigError, BaselineError) as exc:
        parser.exit(2, f"agentlint {args.command} failed: {exc}\n")
    except Exception as exc:  # pragma: no cover - defensive guard
        parser.exit(2, f"agentlint {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _run_lint(parser: argparse.ArgumentParser, orchestrator: Orchestrator, args: argparse.Namespace) -> None:
    outcome = orchestrator.run_lint(
        args.path,
        fail_on=args.fail_on,
        baseline_path=args.baseline,
        update_baseline=bool(args.update_baseline),
        cycle_check=not args.no_cycle_check,
        workers=args.workers,
    )
    fmt = args.format or load_config(Path(args.path)).output.format
    report = orchestrator.render(outcome, fmt)
    if args.output is not None:
        args.output.write_text(report, encoding="utf-8")
        print(f"Report written to {_relativize(args.output)}")
    else:
        sys.stdout.write(report)
    if outcome.baseline_written is not None:
        print(f"Baseline updated at {_relativize(outcome.baseline_written)}")
    if outcome.exit_code:
        parser.exit(outcome.exit_code)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
