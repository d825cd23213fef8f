"""Logging setup for CLI runs: console level plus an optional per-run log file."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

LOGGER_NAME = "pingai"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger() -> logging.Logger:
    """Return the package root logger."""
    return logging.getLogger(LOGGER_NAME)


def configure_logging(level: str | int = logging.WARNING, verbose: bool = False) -> logging.Logger:
    """Set the package logger level and attach one stderr handler (idempotent)."""
    logger = get_logger()
    if verbose:
        resolved = logging.DEBUG
    elif isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.WARNING
    else:
        resolved = level
    logger.setLevel(resolved)
    console = next((h for h in logger.handlers if getattr(h, "_pingai_console", False)), None)
    if console is None:
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        console._pingai_console = True  # type: ignore[attr-defined]
        logger.addHandler(console)
    else:
        console.setStream(sys.stderr)
    # The file handler may lower the logger level; the console keeps its own.
    console.setLevel(resolved)
    return logger


@contextmanager
def run_log_context(
    log_file: Path,
    verbose: bool = False,
) -> Generator[logging.Logger, None, None]:
    """
    Attach a file handler to the package logger for the duration of the context.
    Log file is UTF-8; format: timestamp [LEVEL] name: message.
    """
    logger = get_logger()
    level = logging.DEBUG if verbose else logging.INFO
    previous = logger.level
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    try:
        yield logger
    finally:
        logger.removeHandler(handler)
        handler.close()
        logger.setLevel(previous)
