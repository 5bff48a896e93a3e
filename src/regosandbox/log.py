"""Logging utilities for regosandbox.

Library modules only ever call get_logger(__name__); handlers are
configured by the application through setup_logging.
"""

import logging
import sys
from typing import Optional


def setup_logging(verbose: bool = False, level: Optional[int] = None) -> None:
    """Configure the root logger with a consistent format.

    Safe to call more than once.

    Args:
        verbose: If True, set log level to DEBUG, otherwise INFO
        level: Optional explicit log level (overrides verbose)
    """
    if level is not None:
        log_level = level
    else:
        log_level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
