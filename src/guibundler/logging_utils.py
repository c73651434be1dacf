"""Logging setup shared by the CLI and GUI entry points."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "guibundler"
LOG_FILE_NAME = "guibundler.log"

_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_CONSOLE_FORMAT = "[%(levelname)s] %(message)s"


def setup_logging(
    level: int = logging.WARNING,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``guibundler`` logger.

    The console handler honours ``level``; the optional rotating file handler
    under ``log_dir`` always records DEBUG. Calling this twice only adjusts
    the console level.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    console = next(
        (h for h in logger.handlers if getattr(h, "_guibundler_console", False)),
        None,
    )
    if console is None:
        console = logging.StreamHandler()
        console._guibundler_console = True  # type: ignore[attr-defined]
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(console)
    console.setLevel(level)

    if log_dir is not None and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=512_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.debug("Logging initialized at %s", log_dir / LOG_FILE_NAME)

    return logger


def log_file_path(log_dir: Path) -> Path:
    return log_dir / LOG_FILE_NAME
