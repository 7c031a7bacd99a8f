"""
Logging helpers shared by the transform modules and the command line.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed once by whoever owns the process (the CLI, a test, a notebook)
through ``setup_logging``.
"""

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    format_string: str = None,
    name: str = None,
    console_level: int = logging.WARNING
) -> logging.Logger:
    """
    Attach a stderr handler and, optionally, a file handler to a logger.

    Calling it again replaces the handlers installed by the previous call.
    The file receives everything at ``level`` and above, the console only
    ``console_level`` and above so timings stay out of the terminal unless
    asked for.

    Args:
        log_file: Append log records to this file (parent dirs are created)
        level: Level of the logger itself and of the file handler
        format_string: Record format (defaults to DEFAULT_FORMAT)
        name: Logger to configure, e.g. 'melcepstrum' (None = root logger)
        console_level: Level of the stderr handler

    Returns:
        The configured logger
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = [_handler(logging.StreamHandler(sys.stderr), console_level, formatter)]

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file, mode='a', encoding='utf-8'), level, formatter))

    return logger


def get_logger(name: str = None) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def timed(logger: logging.Logger, label: str) -> Iterator[None]:
    """
    Log the wall-clock duration of the enclosed block at DEBUG level.

    Example:
        >>> with timed(logger, "Mel Scale And Log"):
        ...     mel = weights @ spectral
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        if logger.isEnabledFor(logging.DEBUG):
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.debug(f"{label} - Execution Time: {elapsed_ms:.3f} ms")
