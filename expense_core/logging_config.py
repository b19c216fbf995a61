"""Logging configuration for the expense manager surfaces."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "expense_core"
LOG_FILE_NAME = "expense_manager.log"


def setup_logging(
    level: Union[int, str] = logging.INFO, log_dir: Optional[Path] = None
) -> logging.Logger:
    """Configure the package logger with a console handler and optional rotating file.

    Calling it again replaces the handlers installed by a previous call.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger(ROOT_LOGGER)
    # The file handler records DEBUG detail; the console handler filters at ``level``.
    root_logger.setLevel(logging.DEBUG if log_dir is not None else level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / LOG_FILE_NAME,
            maxBytes=1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s.%(funcName)s: %(message)s")
        )
        root_logger.addHandler(file_handler)

    return root_logger
