"""Logging configuration for host programs using radtrace."""

import logging
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Union[str, int] = "INFO",
    fmt: Optional[str] = None,
    name: str = "radtrace",
) -> logging.Logger:
    """
    Attach a console handler to the radtrace logger.

    Calling this again replaces the handler installed by the previous call
    instead of adding another one.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or number
        fmt: Log record format
        name: Logger name

    Returns:
        Configured logger instance
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, "_radtrace_console", False):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    console_handler._radtrace_console = True
    logger.addHandler(console_handler)

    return logger
