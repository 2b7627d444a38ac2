"""Logging setup for the statcat CLI.

Every log record and every piece of rich output (progress lines, tables,
summary panels) goes through the one `console` defined here, so progress
lines can be cleared before a log line is printed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()

FILE_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Libraries that are noisy at DEBUG; their level follows --debug only.
THIRD_PARTY_LOGGERS = {
    "httpx": logging.DEBUG,
    "httpcore": logging.INFO,
    "sqlalchemy.engine": logging.INFO,
    "aiosqlite": logging.INFO,
}


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
    debug_third_party: bool = False,
) -> None:
    """Route the root logger through rich, plus an optional plain-text file.

    Args:
        level: Level for statcat's own loggers
        log_file: Also append records to this file
        debug_third_party: Let httpx/SQLAlchemy/aiosqlite log at debug levels
    """
    handlers: list[logging.Handler] = [
        RichHandler(console=console, show_path=False, rich_tracebacks=True)
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)

    for name, debug_level in THIRD_PARTY_LOGGERS.items():
        logging.getLogger(name).setLevel(
            debug_level if debug_third_party else logging.WARNING
        )
