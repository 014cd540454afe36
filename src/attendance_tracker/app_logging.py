"""Logging configuration helpers."""

import logging

LOGGER_NAME = "attendance_tracker"
LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger and set its level.

    Repeated calls only adjust the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.getLevelName(level.upper()))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
