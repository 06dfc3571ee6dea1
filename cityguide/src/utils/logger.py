"""
City Guide - Logging
=====================
One log format for the whole process: every City Guide module and the
uvicorn server loggers write ``time | level | name | message`` lines to
stdout.

Verbosity follows ``settings.ENV``: ``"dev"`` logs everything from
DEBUG up, ``"prod"`` only warnings and errors.

Usage:
    from cityguide.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Index ready")

The server entry point calls ``align_uvicorn_loggers()`` before handing
control to uvicorn (started with ``log_config=None`` so it keeps these
handlers).
"""

import logging
import sys

from cityguide.config.settings import settings

_LEVEL_BY_ENV = {"dev": logging.DEBUG, "prod": logging.WARNING}
_DEFAULT_LEVEL = _LEVEL_BY_ENV.get(settings.ENV, logging.INFO)
_FORMATTER = logging.Formatter(fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _stdout_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_FORMATTER)
    return handler


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Return the named logger, attaching the stdout handler on first use.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit level; defaults to the one picked by ``settings.ENV``.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        resolved = level if level is not None else _DEFAULT_LEVEL
        logger.setLevel(resolved)
        logger.addHandler(_stdout_handler(resolved))
        logger.propagate = False
    return logger


def align_uvicorn_loggers(level: int | None = None) -> None:
    """Replace the handlers of uvicorn's loggers with the City Guide one."""
    resolved = level if level is not None else _DEFAULT_LEVEL
    for name in UVICORN_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(resolved)
        logger.addHandler(_stdout_handler(resolved))
        logger.propagate = False
