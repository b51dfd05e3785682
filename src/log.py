"""Log utilities."""

import logging
import os

from rich.logging import RichHandler

import constants


def _resolve_level() -> int:
    """Return the log level configured through the environment.

    Unknown level names fall back to the default level.

    Returns:
        int: Numeric logging level.
    """
    name = os.environ.get(constants.LOG_LEVEL_ENV_VAR, constants.DEFAULT_LOG_LEVEL)
    level = logging.getLevelName(name.strip().upper())
    if isinstance(level, int):
        return level
    return logging.getLevelName(constants.DEFAULT_LOG_LEVEL)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for Rich console output.

    The returned logger has its level taken from the TELEMETRY_LOG_LEVEL
    environment variable (INFO when unset), its handlers replaced with a
    single RichHandler for rich-formatted console output, and propagation to
    ancestor loggers disabled.

    Parameters:
        name (str): Name of the logger to retrieve or create.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level())
    logger.handlers = [RichHandler(show_path=False)]
    logger.propagate = False
    return logger
