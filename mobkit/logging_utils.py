"""Centralised logging configuration for mobkit."""

from __future__ import annotations

import logging
import sys

__all__ = ["logger", "setup_logging", "verbosity_level"]

logger = logging.getLogger("mobkit")

_FORMAT = "%(levelname)s %(name)s: %(message)s"
_NOISY_LOGGERS = ("asyncio", "aiohttp")


def verbosity_level(verbosity: int) -> int:
    """Map the number of `-v` flags to a logging level."""

    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbosity: int = 0, level_override: str | None = None) -> logging.Logger:
    """Attach a single stderr handler to the ``mobkit`` logger.

    ``level_override`` (normally ``LOG_LEVEL`` from the environment) can only
    make output more verbose than the flags asked for.
    """

    level = verbosity_level(verbosity)
    if level_override:
        resolved = logging.getLevelName(level_override.upper())
        if isinstance(resolved, int):
            level = min(level, resolved)

    for handler in list(logger.handlers):
        if getattr(handler, "_mobkit_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._mobkit_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger
