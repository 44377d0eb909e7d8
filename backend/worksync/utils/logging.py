"""Unified logging configuration for the worksync backend.

Provides consistent logging with console output and optional rotating file
output. All module loggers live under the `worksync` parent logger.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from worksync.settings import settings

LOG_FORMAT = "[%(asctime)s.%(msecs)03d][%(levelname)s][%(filename)s:%(lineno)d]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "worksync"


def _ensure_root_logger_configured() -> None:
    """
    Ensure the worksync parent logger has a formatted console handler.
    Called automatically on module import.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    has_formatted_handler = any(
        isinstance(h, logging.StreamHandler)
        and not isinstance(h, RotatingFileHandler)
        and h.formatter is not None
        and "%(asctime)s" in (h.formatter._fmt or "")
        for h in root_logger.handlers
    )
    if has_formatted_handler:
        return

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)

    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)


def setup_logging(log_name: str = "worksync") -> logging.Logger:
    """
    Setup logging with console and, when enabled, file output.

    Log file path pattern: {workspace}/logs/{log_name}.log

    Args:
        log_name: The name of the log file (without .log extension).

    Returns:
        Configured logger instance
    """
    _ensure_root_logger_configured()

    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{log_name}")
    if not settings.log_to_file:
        return logger

    log_dir = settings.get_logs_root()
    os.makedirs(log_dir, exist_ok=True)
    log_file_path = os.path.join(log_dir, f"{log_name}.log")

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(isinstance(h, RotatingFileHandler) and h.baseFilename == log_file_path for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(file_handler)
        root_logger.info(f"Log file handler added: {log_file_path}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Logger instance under the worksync namespace
    """
    _ensure_root_logger_configured()

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


_ensure_root_logger_configured()
