"""Logging setup utilities for barn.

Configures logging for the whole application based on the logging
section of the settings.
"""

from __future__ import annotations

import logging
import sys

from barn.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None, verbose: bool = False) -> None:
    """Configure the ``barn`` logger.

    Sets up the logger with the configured level and format, writing to
    stderr and, when ``config.file`` is set, to that file as well.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
        verbose: Force DEBUG level regardless of ``config.level``.
    """
    if config is None:
        config = LoggingConfig()

    level = "DEBUG" if verbose else config.level.upper()
    root_logger = logging.getLogger("barn")
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.info("Logging initialized at %s level", level)
