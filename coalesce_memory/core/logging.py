"""Logging helpers using Rich."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

PACKAGE_LOGGER = "coalesce_memory"

_CONFIGURED = False


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """Return a Rich configured logger."""
    global _CONFIGURED
    if not _CONFIGURED:
        logging.basicConfig(
            level=logging.WARNING,
            format="%(message)s",
            handlers=[RichHandler(show_time=False, show_path=False, rich_tracebacks=True)],
        )
        logging.getLogger(PACKAGE_LOGGER).setLevel(logging.INFO)
        _CONFIGURED = True
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_verbose(verbose: bool) -> None:
    """Switch the package logger between INFO and DEBUG."""
    get_logger(PACKAGE_LOGGER, logging.DEBUG if verbose else logging.INFO)
