"""
Package-wide logger for twiglet.

Importing the library only creates the ``twiglet`` logger; output handlers
are attached by the application through configure_logging().
"""

import logging
import sys
from typing import Optional, TextIO


LOGGER_NAME = "twiglet"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


logger = logging.getLogger(LOGGER_NAME)
logger.addHandler(logging.NullHandler())


def configure_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Send twiglet's records to ``stream`` (stderr by default) at ``level``.

    Calling it again replaces the handler installed by the previous call,
    so the package logger never holds more than one console handler.

    Returns:
        The stream handler attached to the package logger
    """

    for existing in list(logger.handlers):
        if getattr(existing, "_twiglet_console", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._twiglet_console = True
    logger.addHandler(handler)

    logger.setLevel(level)
    return handler


__all__ = ["logger", "LOGGER_NAME", "configure_logging"]
