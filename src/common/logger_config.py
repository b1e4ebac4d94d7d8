"""Application-wide logging configuration."""

import logging
from typing import Optional

from rich.logging import RichHandler

from src.common.config.settings import settings

# Third-party loggers that only matter when something goes wrong
_QUIET_LOGGERS = ("mysql.connector", "schedule")


def setup_logging(level: Optional[str] = None) -> None:
    """Routes every module logger through a single rich console handler."""
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # Product and person names may contain brackets, so rich markup stays off
    root_logger.handlers = [
        RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
            tracebacks_word_wrap=True,
            tracebacks_suppress=[logging],
        )
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
