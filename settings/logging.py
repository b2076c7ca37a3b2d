"""Logging configuration."""

import sys

from loguru import logger

from settings import LOG_DIR, LOG_LEVEL, LOG_RETENTION

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <cyan>{name}</cyan> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {name}:{function}:{line} | {message}"
FAILURES_LOG = "failures.log"


def _is_failure(record) -> bool:
    return record["level"].no >= logger.level("ERROR").no and record["name"].startswith("kvshadow")


def setup_logging(level: str | None = None, to_file: bool = True):
    """Configure console logging and, optionally, a daily file plus a failures-only file.

    `level` defaults to SHADOW_LOG_LEVEL; the daily file always logs at DEBUG.
    """
    level = (level or LOG_LEVEL).upper()
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(
            LOG_DIR / "kvshadow_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="00:00",
            retention=LOG_RETENTION,
            compression="gz",
            enqueue=True,
        )
        # Failure events from the engine only
        logger.add(LOG_DIR / FAILURES_LOG, format=FILE_FORMAT, filter=_is_failure, rotation="10 MB", retention=LOG_RETENTION)
        logger.info("Logging to {} at {}", LOG_DIR, level)

    return logger
