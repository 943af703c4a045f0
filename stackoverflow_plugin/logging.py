"""Structured logging helpers.

Stdout carries the launcher protocol, so log output goes to stderr or a log file.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


# Files opened by configure_logging; closed when logging is configured again.
_log_files: list[TextIO] = []


def configure_logging(level: int | str = logging.INFO, log_file: Path | None = None) -> None:
    numeric_level = _resolve_level(level)
    previous = list(_log_files)
    _log_files.clear()
    stream: TextIO
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = log_file.open("a", encoding="utf-8")
        _log_files.append(stream)
    else:
        stream = sys.stderr

    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(stream)],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
    for old_stream in previous:
        old_stream.close()


logger = structlog.get_logger()

__all__ = ["configure_logging", "logger"]
