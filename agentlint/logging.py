"""Logging setup shared by the CLI, the service and the crossfile checks."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "agentlint"
_CONSOLE_FORMAT = "[agentlint] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``agentlint.<name>``, or the package logger when ``name`` is empty."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach a stderr handler and, with ``log_file``, a debug-level file sink.

    Lint findings go to stdout through the renderers, so the console handler
    stays at WARNING unless ``verbose`` is set. The file sink always records
    debug detail such as phase timings and skipped reference files.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    # Repeated main() calls in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    logger_level = console_level
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)
        logger_level = logging.DEBUG

    logger.setLevel(logger_level)
    return logger


__all__ = ["configure_logging", "get_logger"]
