"""
Logging configuration for the geonode-devenv CLI.

``main.py`` calls ``setup_logging`` once; modules log through
``logging.getLogger(__name__)``.

Console level: ``--debug`` / ``--verbose`` / ``--quiet``, else
GEONODE_DEVENV_LOG_LEVEL, else WARNING. Progress banners are printed
with click, not logged, so the default console stays quiet.

GEONODE_DEVENV_LOG_FILE adds a file log with its own level
(GEONODE_DEVENV_LOG_FILE_LEVEL). Provisioning runs take a long time and
the file keeps every command line the adapters executed.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

# (max level, format, date format), first match wins
_CONSOLE_FORMATS = (
    (logging.DEBUG, "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = "%(levelname)s: %(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler and, optionally, a file handler.

    Args:
        level: Console level name.
        log_file: Append log records to this file as well.
        log_file_level: Level for the file (default: ``level``).
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level or level)
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT, None
    for max_level, candidate, candidate_datefmt in _CONSOLE_FORMATS:
        if level <= max_level:
            fmt, datefmt = candidate, candidate_datefmt
            break

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
