"""Tests for qualitygate logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from qualitygate.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _reset_logger():  # type: ignore[no-untyped-def]
    yield
    logger = logging.getLogger("qualitygate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger("checkers.lint").name == "qualitygate.checkers.lint"
    assert get_logger().name == "qualitygate"


def test_configure_logging_is_idempotent() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_log_file_captures_debug_while_console_stays_at_info(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "gate.log"
    logger = configure_logging(log_file=log_file)

    get_logger("resolver").debug("diffing origin/master..HEAD")
    for handler in logger.handlers:
        handler.flush()

    console = logger.handlers[0]
    assert console.level == logging.INFO
    assert "diffing origin/master..HEAD" in log_file.read_text(encoding="utf-8")
