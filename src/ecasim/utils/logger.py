"""Logging utilities for the ECASIM asset simulator.

This module provides centralized logging configuration for the
Energy Community Asset Simulator.
"""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecasim.config.schema import LoggingConfig

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Create a default logger
logger = logging.getLogger("ecasim")

# Configure logging if not already configured
if not logger.handlers:
    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)

    # Create formatter
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)
    console_handler.setFormatter(formatter)

    # Add handler to logger
    logger.addHandler(console_handler)
    logger.setLevel(logging.INFO)


def configure_logging(logging_config: "LoggingConfig") -> logging.Logger:
    """Apply a logging configuration to the package logger.

    Args:
        logging_config: Logging section of the simulator configuration

    Returns:
        The configured package logger
    """
    level = logging.getLevelName(logging_config.level)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            if logging_config.enable_console:
                handler.setLevel(level)
                handler.setFormatter(logging.Formatter(logging_config.format))
            else:
                logger.removeHandler(handler)

    return logger


__all__ = ["logger", "configure_logging", "DEFAULT_LOG_FORMAT"]
