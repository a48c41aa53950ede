"""Logging setup for the helper process.

Standard output is the remote-helper protocol channel, so every handler
installed here writes to stderr or a file.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from git_remote_s3.config.schema import LoggingConfig

PACKAGE_LOGGER = "git_remote_s3"


def effective_level(config: LoggingConfig, verbosity: int = 0) -> int:
    """Combine the configured level with ``-v`` flags.

    One ``-v`` raises verbosity to at least INFO, two or more to DEBUG.
    """
    level = logging.getLevelName(str(config.level).upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity >= 2:
        return min(level, logging.DEBUG)
    if verbosity == 1:
        return min(level, logging.INFO)
    return level


def configure_logging(
    config: LoggingConfig,
    verbosity: int = 0,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the package logger from a LoggingConfig.

    Only the package logger is touched; handlers from an earlier call are
    replaced so the function is safe to call more than once.

    Args:
        config: Logging section of the helper configuration
        verbosity: Number of ``-v`` flags given on the command line
        stream: Console stream (default: sys.stderr)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    if config.console:
        console = logging.StreamHandler(stream or sys.stderr)
        console.setFormatter(formatter)
        logger.addHandler(console)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.setLevel(effective_level(config, verbosity))
    logger.propagate = False
    return logger
