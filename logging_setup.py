"""Log file configuration."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "app.log"


def setup_logging(log_dir: Path, verbose: bool = False, console: bool = True) -> Path:
    """Configure the root logger to write ``app.log`` under ``log_dir``.

    Each record is one line: ``yyyy-MM-dd HH:mm:ss - message``. Handler
    errors are never raised into the caller, so a broken log file cannot
    affect a pipeline run.

    Returns the path of the log file.
    """
    logging.raiseExceptions = False
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    log_file = log_dir / LOG_FILE_NAME
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except OSError as exc:
        print(f"File logging disabled: {exc}", file=sys.stderr)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.info("Logging initialized: level=%s", logging.getLevelName(level))
    return log_file
