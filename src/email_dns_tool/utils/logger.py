"""Logging configuration for the application."""

import logging
import sys

from ..analyzers.protocol import VerbosityLevel

LEVEL_MAP = {
    VerbosityLevel.QUIET: logging.ERROR,
    VerbosityLevel.NORMAL: logging.WARNING,
    VerbosityLevel.VERBOSE: logging.INFO,
    VerbosityLevel.DEBUG: logging.DEBUG,
}


def setup_logger(
    name: str = "email_dns_tool",
    level: VerbosityLevel = VerbosityLevel.NORMAL,
) -> logging.Logger:
    """
    Set up the package logger on stderr.

    stdout is left to the renderers so JSON output stays parseable.

    Args:
        name: Logger name
        level: Verbosity level enum

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(LEVEL_MAP[level])

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(LEVEL_MAP[level])

    if level == VerbosityLevel.DEBUG:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = logging.Formatter("%(levelname)s: %(message)s")

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger
