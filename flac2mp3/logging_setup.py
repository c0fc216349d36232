"""Logging configuration utilities for flac2mp3."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import Settings


LEVEL_LABELS = {
    logging.DEBUG: "Debug",
    logging.INFO: "Info",
    logging.WARNING: "Warn",
    logging.ERROR: "Error",
    logging.CRITICAL: "Error",
}


def _label(record: logging.LogRecord) -> str:
    return LEVEL_LABELS.get(record.levelno, record.levelname.capitalize())


class HookFormatter(logging.Formatter):
    """Format records as ``YY-M-D HH:MM:SS.d|[pid]Level|message``."""

    def formatTime(self, record, datefmt=None):  # noqa: N802
        ts = datetime.fromtimestamp(record.created)
        return f"{ts:%y}-{ts.month}-{ts.day} {ts:%H:%M:%S}.{int(record.msecs // 100)}"

    def format(self, record: logging.LogRecord) -> str:
        line = f"{self.formatTime(record)}|[{record.process}]{_label(record)}|{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ConsoleFormatter(logging.Formatter):
    """Format records as ``Level|message`` for standard error."""

    def format(self, record: logging.LogRecord) -> str:
        return f"{_label(record)}|{record.getMessage()}"


class ConsoleFilter(logging.Filter):
    """Pass warnings, errors and records logged with ``extra={"console": True}``."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING or getattr(record, "console", False)


def rotation_namer(name: str) -> str:
    """Return ``flac2mp3.1.txt`` for ``flac2mp3.txt.1``, keeping the extension last."""
    base, _, index = name.rpartition(".")
    if not index.isdigit():
        return name
    path = Path(base)
    return str(path.with_name(f"{path.stem}.{index}{path.suffix}"))


def setup_logging(settings: Settings | None = None, debug: int = 0) -> logging.Logger:
    """Configure application logging.

    This sets up a :class:`~logging.handlers.RotatingFileHandler` that writes to
    ``/config/logs/flac2mp3.txt`` by default. The file is rotated when it
    exceeds ``max_log_size`` bytes, keeping ``max_log_backups`` generations.
    Warnings and errors are echoed to standard error.
    """

    settings = settings or Settings()
    path = Path(settings.log_file)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        path, maxBytes=settings.max_log_size, backupCount=settings.max_log_backups
    )
    handler.namer = rotation_namer
    handler.setFormatter(HookFormatter())

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ConsoleFormatter())
    console.addFilter(ConsoleFilter())

    logger = logging.getLogger("flac2mp3")
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.setLevel(logging.DEBUG if debug >= 1 else logging.INFO)
    logger.addHandler(handler)
    logger.addHandler(console)
    return logger
