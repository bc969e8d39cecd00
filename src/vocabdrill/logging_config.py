"""Logging configuration for the application."""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from vocabdrill.config import settings

LOG_FILE_NAME = "vocabdrill.log"

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "faker", "sqlalchemy.engine")


def setup_logging(first_message: str = "", level: Optional[Union[int, str]] = None) -> None:
    """Configure logging for the entire application.

    Args:
        first_message: Optional banner logged once the handlers are in place.
        level: Optional logging level. If None, LOG_LEVEL is used.
    """
    if level is None:
        level = settings.logging.level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter = logging.Formatter(settings.logging.format)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if first_message:
        root_logger.info(first_message)
    root_logger.info(f"Logging configured with level: {logging.getLevelName(level)}")

    if settings.logging.dir:
        log_dir = Path(settings.logging.dir)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / LOG_FILE_NAME
            file_handler = TimedRotatingFileHandler(
                log_file,
                when=settings.logging.rotation,
                interval=settings.logging.interval,
                backupCount=settings.logging.backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            root_logger.warning(f"Could not set up file logging in {log_dir}: {e}")
        else:
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info(
                f"Log file: {log_file} (rotation: {settings.logging.rotation}, "
                f"interval: {settings.logging.interval}, backup_count: {settings.logging.backup_count})"
            )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
