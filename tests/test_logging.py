"""Tests for agentlint.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from agentlint.logging import configure_logging, get_logger


def test_get_logger_uses_package_hierarchy() -> None:
    assert get_logger().name == "agentlint"
    assert get_logger("crossfile.triggers").name == "agentlint.crossfile.triggers"


def test_console_is_quiet_unless_verbose() -> None:
    quiet = configure_logging()
    assert [handler.level for handler in quiet.handlers] == [logging.WARNING]

    loud = configure_logging(verbose=True)
    assert [handler.level for handler in loud.handlers] == [logging.DEBUG]


def test_log_file_records_debug_detail(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "agentlint.log"
    logger = configure_logging(log_file=log_file)

    get_logger("orchestrator").debug("phase finished")
    get_logger("orchestrator").info("not shown on console")

    assert len(logger.handlers) == 2
    text = log_file.read_text(encoding="utf-8")
    assert "DEBUG agentlint.orchestrator: phase finished" in text
    assert "INFO agentlint.orchestrator: not shown on console" in text


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "first.log")
    logger = configure_logging()

    assert len(logger.handlers) == 1
