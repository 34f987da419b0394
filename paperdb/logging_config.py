from __future__ import annotations
import logging
from typing import Optional, Union

DEFAULT_LOG_LEVEL = logging.WARNING


def resolve_level(level: Union[str, int, None]) -> int:
    """Turn a level name or number into a logging level.

    Unknown names fall back to WARNING rather than failing.
    """
    if level is None:
        return DEFAULT_LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = getattr(logging, str(level).upper(), None)
    return resolved if isinstance(resolved, int) else DEFAULT_LOG_LEVEL


def configure_logging(level: Union[str, int, None] = None, logger_name: Optional[str] = None) -> logging.Logger:
    """Set the level of the paperdb loggers and return the package logger.

    Handlers are left to the application; paperdb only adjusts how much it
    emits.
    """
    logger = logging.getLogger(logger_name or "paperdb")
    lvl = resolve_level(level)
    logger.setLevel(lvl)
    logger.debug("Log level set to: %s", logging.getLevelName(lvl))
    return logger
