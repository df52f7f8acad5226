"""Logging configuration for the audience manager.

Modules log through ``logging.getLogger("audience_manager.<module>")``; this
module only configures the package logger those names hang from.
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "audience_manager"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP and retry chatter, only shown at the highest verbosity
NOISY_LOGGERS = ("httpx", "httpcore", "tenacity")

_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: logging.DEBUG,
}


def _console_handler(verbosity: int, level: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbosity >= 2,
        show_path=verbosity >= 2,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 3,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    verbosity: int = 1,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure the package logger for one CLI invocation.

    Handlers from a previous call are closed and replaced, so calling this
    repeatedly (e.g. from tests) does not duplicate output.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2=DEBUG, 3=DEBUG including HTTP libraries.
        log_file: Optional file receiving every DEBUG record.

    Returns:
        The ``audience_manager`` logger.
    """
    level = _LEVELS.get(verbosity, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(verbosity, level))
    if log_file:
        logger.addHandler(_file_handler(log_file))

    lib_level = logging.DEBUG if verbosity >= 3 else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(lib_level)

    return logger
