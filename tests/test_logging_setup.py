from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from logging_setup import setup_logging


@pytest.fixture
def restore_root_logger():  # noqa: ANN201
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_log_lines_use_timestamp_dash_message(tmp_path: Path, restore_root_logger) -> None:  # noqa: ANN001
    log_file = setup_logging(tmp_path / "logs", console=False)

    logging.getLogger("pipeline").info("Refinement completed successfully.")
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - Refinement completed successfully\.", lines[-1])


def test_logging_errors_are_not_raised(tmp_path: Path, restore_root_logger) -> None:  # noqa: ANN001
    setup_logging(tmp_path, console=False)
    assert logging.raiseExceptions is False
