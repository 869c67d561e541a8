"""Logger setup for command-line runs.

Library modules only create ``logging.getLogger(__name__)`` loggers below the
``surfgen`` namespace; nothing is printed unless an application attaches
handlers, which is what :func:`setup_logging` does for the CLI.
"""
import logging
import sys
from typing import List, Optional

LOGGER_NAME = "surfgen"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Handlers installed by setup_logging, so a second call replaces only those.
_installed: List[logging.Handler] = []


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route ``surfgen`` log records to stderr and, optionally, to a file.

    Args:
        level: Threshold for the package logger and its handlers.
        log_file: Path of a log file, truncated on each run.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    reset_logging()
    logger.setLevel(level)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        _installed.append(handler)

    logger.debug("logging to stderr%s", f" and {log_file}" if log_file else "")
    return logger


def reset_logging() -> None:
    """Detach and close the handlers a previous :func:`setup_logging` added."""
    logger = logging.getLogger(LOGGER_NAME)
    while _installed:
        handler = _installed.pop()
        logger.removeHandler(handler)
        handler.close()


__all__ = ["setup_logging", "reset_logging"]
