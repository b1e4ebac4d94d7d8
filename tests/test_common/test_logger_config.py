# tests/test_common/test_logger_config.py

import logging

from rich.logging import RichHandler

from src.common.logger_config import setup_logging


def test_setup_logging_installs_a_single_rich_handler() -> None:
    root_logger = logging.getLogger()
    previous_handlers, previous_level = root_logger.handlers[:], root_logger.level
    try:
        setup_logging("debug")
        setup_logging("debug")

        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0], RichHandler)
        assert root_logger.level == logging.DEBUG
        assert logging.getLogger("mysql.connector").level == logging.WARNING
    finally:
        root_logger.handlers = previous_handlers
        root_logger.setLevel(previous_level)
