"""Logging setup for the ``lyryc`` logger tree.

Console output goes to stderr so the CLI can print JSON or LRC on stdout.
A log file, when given, always records DEBUG detail with timestamps.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from ..exceptions import ConfigError

ROOT_LOGGER = "lyryc"

TERSE_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that chatter at INFO/DEBUG during downloads and audio decoding
NOISY_LOGGERS = ("urllib3", "requests", "numba", "librosa", "audioread")


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ConfigError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    verbose: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Configure the ``lyryc`` logger; safe to call more than once.

    Args:
        level: console level name (DEBUG, INFO, WARNING, ...)
        log_file: optional file that receives DEBUG and up
        verbose: timestamped console format
        stream: console stream, stderr by default

    Raises:
        ConfigError: unknown level name
    """
    console_level = _resolve_level(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else console_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream or sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(VERBOSE_FORMAT if verbose else TERSE_FORMAT))
    logger.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger under the ``lyryc`` tree (module loggers pass ``__name__``)."""
    return logging.getLogger(name)
