from __future__ import annotations

import logging

from expense_core.logging_config import LOG_FILE_NAME, ROOT_LOGGER, setup_logging


def test_file_handler_records_debug(tmp_path):
    logger = setup_logging("WARNING", log_dir=tmp_path)
    console, file_handler = logger.handlers

    logging.getLogger(f"{ROOT_LOGGER}.services").debug("daily_expenses saved: 1 items")
    file_handler.flush()
    file_handler.close()

    assert console.level == logging.WARNING
    assert "daily_expenses saved" in (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")


def test_console_only_uses_requested_level():
    logger = setup_logging("error")

    assert logger.level == logging.ERROR
    assert len(logger.handlers) == 1
