"""
Logging helpers.

Library code logs under the ``conmanager`` namespace and stays silent unless
the application configures logging. Set ``CONMANAGER_LOG_LEVEL=DEBUG`` (or
call ``configure_logging("DEBUG")``) to trace every request and response.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "conmanager"

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the ``conmanager`` namespace."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: str | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """
    Send ``conmanager`` log records to a rich console handler.

    Args:
        level: Log level name. Defaults to the configured ``log_level``.
        console: Rich console to write to (stderr by default).

    Returns:
        The configured package logger.
    """
    if level is None:
        from conmanager.config import get_settings

        level = get_settings().log_level

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger


__all__ = ["ROOT_LOGGER", "configure_logging", "get_logger"]
