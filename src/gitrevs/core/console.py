"""Console output and logging configuration.

Provides Rich-based logging setup:
    - stderr_console: Rich console for diagnostics
    - setup_logging(): Configure logging with Rich handler
    - get_logger(): Get a named logger instance
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

stderr_console = Console(stderr=True)


def _normalize_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def setup_logging(level: str | int | None = None, verbose: bool = False) -> logging.Logger:
    """Configure the gitrevs logger with a Rich handler and return it.

    Only the package logger is touched; the host application's root logger
    is left alone. Without an explicit level, ``log_level`` from the loaded
    configuration is used.
    """
    if level is None:
        from gitrevs.core.config import get_config

        level = get_config().log_level
    numeric_level = logging.DEBUG if verbose else _normalize_level(level)

    handler = RichHandler(
        console=stderr_console,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(numeric_level)

    logger = logging.getLogger("gitrevs")
    logger.handlers.clear()
    logger.setLevel(numeric_level)
    logger.addHandler(handler)

    return logger


def get_console() -> Console:
    return stderr_console


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or "gitrevs")
