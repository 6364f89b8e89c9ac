"""
Logging configuration for the crop-and-remap dataset generator.

Provides centralized logging setup and utilities for consistent logging
throughout the application. Module loggers live under the ``labelcrop``
namespace and propagate to the package logger configured by
:func:`setup_logger`, so a single call controls level and handlers.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .constants import LOG_FORMAT, LOG_DATE_FORMAT, DEFAULT_LOG_LEVEL, DEFAULT_LOGGER_NAME


class TqdmStreamHandler(logging.StreamHandler):
    """
    Console handler that prints through tqdm.write.

    Lines logged while a progress bar is active are written above the bar
    instead of over it.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
            self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Set up a logger with consistent formatting.

    Calling this again for the same name reconfigures the level and handlers
    (the CLI switches to DEBUG after parsing ``--verbose``).

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        console: Whether to log to console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if console:
        console_handler = TqdmStreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger inside the package namespace.

    Names outside ``labelcrop`` are nested under it so their records reach
    the package handlers.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Logger instance
    """
    if name != DEFAULT_LOGGER_NAME and not name.startswith(DEFAULT_LOGGER_NAME + '.'):
        name = f"{DEFAULT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


class LoggerMixin:
    """
    Mixin class to add logging capability to any class.

    Usage:
        class MyClass(LoggerMixin):
            def __init__(self):
                super().__init__()
                self.logger.info("MyClass initialized")
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        if not hasattr(self, '_logger'):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger
