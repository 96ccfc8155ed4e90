"""
Logging setup for the sitegantt package.

All modules use ``logging.getLogger(__name__)``; this module only attaches a
console handler to the package root logger, once, with the level taken from
``SITEGANTT_LOG_LEVEL``.
"""

import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER = "sitegantt"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: Optional[Union[str, int]] = None) -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Args:
        level: Logging level name or number (defaults to SITEGANTT_LOG_LEVEL or INFO)

    Returns:
        The package root logger
    """
    global _configured

    if level is None:
        level = os.getenv("SITEGANTT_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger(PACKAGE_LOGGER)
    root.setLevel(level)

    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package namespace, configuring it on first use."""
    if not _configured:
        configure_logging()
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
