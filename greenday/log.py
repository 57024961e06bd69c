"""loguru setup for GreenDay entry points.

Library modules just ``from loguru import logger``; only the TUI and the
web app call configure_logging().
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(
    level: str | None = None,
    log_file: str | Path | None = None,
    console: bool = True,
    rotation: str = "1 week",
    retention: str = "30 days",
) -> None:
    """Replace loguru's default sink with GreenDay's sinks.

    Level and file default to GREENDAY_LOG_LEVEL / GREENDAY_LOG_FILE.
    The TUI passes console=False so log lines don't draw over the screen.
    """
    level = (level or os.environ.get("GREENDAY_LOG_LEVEL", "INFO")).upper()
    if log_file is None:
        log_file = os.environ.get("GREENDAY_LOG_FILE") or None

    logger.remove()
    if console:
        logger.add(sys.stderr, level=level, format=DEFAULT_FORMAT, colorize=True)
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level=level,
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
        )
