from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure the package logger once; later calls only adjust the level."""
    logger = logging.getLogger("timeclock")
    logger.setLevel(level if isinstance(level, int) else str(level).upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
