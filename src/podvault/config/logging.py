"""Logging setup using Rich for console output."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "podvault"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(
    verbose: bool = False,
    log_file: Path | None = None,
    level: str | None = None,
) -> logging.Logger:
    """Configure the package logger.

    Safe to call more than once; previously installed handlers are replaced.

    Args:
        verbose: Force DEBUG level
        log_file: Optional file to mirror log records into
        level: Explicit level name (ignored when verbose is set)

    Returns:
        The configured "podvault" logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    resolved = logging.DEBUG if verbose else getattr(logging, (level or "WARNING").upper())
    logger.setLevel(resolved)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(resolved)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)
        # file gets everything, console keeps its own threshold
        logger.setLevel(logging.DEBUG)

    logger.propagate = False
    return logger
