"""Logging setup: Rich console handler plus a plain-text log file."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["FILE_FORMAT", "setup_logging"]

FILE_FORMAT = "%(asctime)s [%(levelname)s] - %(message)s"


def setup_logging(
    log_path: Path | None,
    level: str = "info",
    *,
    console: Console | None = None,
    console_level: str = "warning",
) -> None:
    """Configure the ``glone`` logger.

    Args:
        log_path: File receiving every record at ``level`` (skipped if None)
        level: Log level for the file (debug, info, warning, error)
        console: Rich console for the stderr handler
        console_level: Log level shown on the console
    """
    file_level = getattr(logging, level.upper(), logging.INFO)
    stream_level = getattr(logging, console_level.upper(), logging.WARNING)

    root_logger = logging.getLogger("glone")
    root_logger.setLevel(min(file_level, stream_level))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    console_handler.setLevel(stream_level)
    root_logger.addHandler(console_handler)

    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
        except OSError as e:
            root_logger.warning("Could not open log file %s: %s", log_path, e)
        else:
            file_handler.setLevel(file_level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            root_logger.addHandler(file_handler)

    root_logger.propagate = False
    root_logger.info("Logger initialized")
