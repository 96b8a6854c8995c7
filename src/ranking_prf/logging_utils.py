"""Logging setup for entry points."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if not name:
        raise ValueError("log level must be a non-empty string (e.g., 'INFO', 'DEBUG')")
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def configure_logging(level: str | int = "INFO", logger_name: str | None = None) -> None:
    """
    Configure console logging with a consistent format.

    Safe to call repeatedly: an existing stream handler is reconfigured
    instead of adding a duplicate.
    """
    target = logging.getLogger(logger_name)
    target.setLevel(_parse_level(level))
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    for handler in target.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setFormatter(formatter)
            handler.setLevel(target.level)
            return

    handler = logging.StreamHandler()
    handler.setLevel(target.level)
    handler.setFormatter(formatter)
    target.addHandler(handler)
