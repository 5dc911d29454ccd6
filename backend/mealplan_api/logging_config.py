"""Logging setup shared by the API and its scripts."""

import sys

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logger(level: str = "INFO", format_string: str | None = None):
    """Replace loguru's default handler with a single stderr sink.

    Args:
        level: minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: custom loguru format, defaults to ``DEFAULT_FORMAT``

    Returns:
        the configured loguru logger
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=format_string or DEFAULT_FORMAT,
        level=level.upper(),
        colorize=True,
    )
    return logger
