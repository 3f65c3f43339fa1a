"""Logger hierarchy for vaultsite runs, CLI commands and the service."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "vaultsite"
CONSOLE_FORMAT = "[vaultsite] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Logger for one pipeline component, e.g. ``vaultsite.orchestrator``."""
    if not component:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{component}")


def level_for(*, verbose: bool = False, quiet: bool = False) -> int:
    """Debug wins over quiet; quiet keeps warnings such as skipped files."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the vaultsite logger.

    Existing handlers are dropped first, so calling this again reconfigures
    instead of duplicating output. The file handler always records the same
    level as the console.
    """
    level = level_for(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_handler(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT))
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "level_for"]
