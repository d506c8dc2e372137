"""
utils/logger.py — Project-wide logging configuration
=====================================================
Every module asks `get_logger(name)` for its logger so that the engines,
the API and the CLI all print through the same colour-coded console
format.  The default level comes from `config.LOG_LEVEL`
(env: RPPG_LOG_LEVEL).
"""

import logging
import sys

from config import LOG_LEVEL

_COLOURS = {
    logging.DEBUG:    "\033[36m",   # cyan
    logging.INFO:     "\033[32m",   # green
    logging.WARNING:  "\033[33m",   # yellow
    logging.ERROR:    "\033[31m",   # red
    logging.CRITICAL: "\033[35m",   # magenta
}
_RESET = "\033[0m"

_BASE_FMT = "%(asctime)s.%(msecs)03d  %(levelname)s  %(name)-18s  %(message)s"
_DATE_FMT = "%H:%M:%S"


class _ColourFormatter(logging.Formatter):
    """Wrap the level tag in an ANSI colour without touching the record."""

    def format(self, record: logging.LogRecord) -> str:
        colour = _COLOURS.get(record.levelno, _RESET)
        original = record.levelname
        record.levelname = f"{colour}{original:<8}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = LOG_LEVEL
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        return value if isinstance(value, int) else logging.INFO
    return level


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Return (or create) a named logger with a single colourised handler.

    Parameters
    ----------
    name  : str              Component name shown in log lines.
    level : int | str | None Minimum severity; defaults to `config.LOG_LEVEL`.
    """
    logger = logging.getLogger(name)
    if getattr(logger, "_rppg_configured", False):
        return logger

    resolved = _resolve_level(level)
    logger.setLevel(resolved)
    logger.propagate = False          # Keep lines out of the root logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_ColourFormatter(fmt=_BASE_FMT, datefmt=_DATE_FMT))
    logger.addHandler(handler)

    logger._rppg_configured = True    # type: ignore[attr-defined]
    return logger


def set_level(level: int | str) -> None:
    """Change the level of every logger created through `get_logger`."""
    resolved = _resolve_level(level)
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and getattr(logger, "_rppg_configured", False):
            logger.setLevel(resolved)
