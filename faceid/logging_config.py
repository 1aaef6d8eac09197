"""Logging configuration for the FaceID capture pipeline.

All package loggers live under the ``faceid`` namespace. Handlers are attached
once, to the namespace root, so module loggers obtained via ``get_logger``
simply propagate to it.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER_NAME = "faceid"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter with colors for different log levels (terminal only)."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, fmt: str, datefmt: str, stream=None):
        super().__init__(fmt, datefmt=datefmt)
        self.stream = stream if stream is not None else sys.stdout

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, colorizing level and logger name on a TTY."""
        color = self.COLORS.get(record.levelname)
        if color is None or not (hasattr(self.stream, "isatty") and self.stream.isatty()):
            return super().format(record)

        # Colorize a copy so other handlers (file) see the plain record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        record.name = f"{self.BOLD}{record.name}{self.RESET}"
        return super().format(record)


def _resolve_level(level: Optional[str]) -> int:
    if level is None:
        try:
            from faceid.config import get_config

            level = get_config().log_level
        except ValueError:
            # Invalid environment must not prevent logging itself
            level = "INFO"

    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``faceid`` root logger with consistent formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, reads from environment via Config.
        log_file: Optional file path to also log to a file.

    Returns:
        The configured ``faceid`` logger.

    Example:
        >>> setup_logging(level="DEBUG", log_file="faceid.log")
        >>> get_logger(__name__).info("Capture started")
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Already configured: only adjust level and file output if explicitly asked to
    if logger.handlers:
        if level is not None:
            logger.setLevel(_resolve_level(level))
        if log_file:
            _add_file_handler(logger, log_file)
        return logger

    logger.setLevel(_resolve_level(level))

    # Console handler with colored formatter
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT, sys.stdout))
    logger.addHandler(console_handler)

    # Optional file handler (without colors)
    if log_file:
        _add_file_handler(logger, log_file)

    # Prevent propagation to the process root logger (avoid duplicate messages)
    logger.propagate = False

    return logger


def _add_file_handler(logger: logging.Logger, log_file: str) -> None:
    path = os.path.abspath(log_file)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
            return

    file_handler = logging.FileHandler(path)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Get logger for a specific module.

    Module names outside the ``faceid`` package (scripts, tests) are nested
    under the package namespace so they share its handlers.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger that propagates to the configured ``faceid`` logger.

    Example:
        >>> from faceid.logging_config import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Module initialized")
    """
    setup_logging()

    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)
