"""Logging setup shared by the server entry point and the test suite"""

import logging
import sys

from paper_intake.config import config

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


class InfoFilter(logging.Filter):
    """Filter to only allow INFO and DEBUG logs (exclude WARNING and above)"""

    def filter(self, record):
        return record.levelno < logging.WARNING


def resolve_level(log_level: str | None = None) -> int:
    """Map a level name to its numeric value, falling back to INFO"""
    name = (log_level or config.get("log_level", "INFO")).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: str | None = None) -> int:
    """
    Route INFO/DEBUG to stdout and WARNING/ERROR to stderr.

    Args:
        log_level: Level name; defaults to ``config["log_level"]``

    Returns:
        The numeric level applied to the root logger
    """
    level = resolve_level(log_level)
    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(InfoFilter())
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(stdout_handler)
    root_logger.addHandler(stderr_handler)

    # uvicorn is started with log_config=None, so its loggers reach these handlers
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    return level


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module name.

    Args:
        name: Usually __name__ from the calling module

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
