"""
Logging configuration — central setup for the CLI entrypoint.

Called once at startup by main.py.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config.

Levels are resolved in precedence order:
    CLI flag  >  NEWMACHINE_LOG_LEVEL env var  >  WARNING (default)

Optional file output via NEWMACHINE_LOG_FILE / NEWMACHINE_LOG_FILE_LEVEL.

Progress lines of a run are printed by the CLI, not logged, so they
show at every level. Console log records share their look: a colored
``[WARN]`` / ``[ERROR]`` tag in front of the message.
"""

from __future__ import annotations

import logging
import sys

import click

LOG_LEVEL_ENV = "NEWMACHINE_LOG_LEVEL"
LOG_FILE_ENV = "NEWMACHINE_LOG_FILE"
LOG_FILE_LEVEL_ENV = "NEWMACHINE_LOG_FILE_LEVEL"

# Console, above INFO: level tag only
_FMT_MINIMAL = "%(message)s"

# INFO: timestamped with module context
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"

# DEBUG: file:line
_FMT_DEBUG = "%(asctime)s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_CONSOLE = "%H:%M:%S"

# File output: full detail, never colored
_FMT_FILE = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

_LEVEL_TAGS = {
    logging.DEBUG: ("[DEBUG]", "blue"),
    logging.INFO: ("[INFO]", "green"),
    logging.WARNING: ("[WARN]", "yellow"),
    logging.ERROR: ("[ERROR]", "red"),
    logging.CRITICAL: ("[ERROR]", "red"),
}


class LevelTagFormatter(logging.Formatter):
    """Prefix each console record with a colored level tag."""

    def __init__(self, fmt: str, datefmt: str | None = None, color: bool = True):
        super().__init__(fmt, datefmt=datefmt)
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        tag, fg = _LEVEL_TAGS.get(record.levelno, ("[LOG]", "white"))
        if self._color:
            tag = click.style(tag, fg=fg)
        return f"{tag} {message}"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    color: bool | None = None,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
        color: Colored console tags. Defaults to "stderr is a terminal".
    """
    numeric_level = _parse_level(level)
    if color is None:
        color = sys.stderr.isatty()

    if numeric_level <= logging.DEBUG:
        fmt = _FMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt = _FMT_VERBOSE
    else:
        fmt = _FMT_MINIMAL

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(LevelTagFormatter(fmt, datefmt=_DATEFMT_CONSOLE, color=color))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    # Effective root level = minimum of console and file levels
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    # A broken log handler must not abort a half-provisioned machine
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
