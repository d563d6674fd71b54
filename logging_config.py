"""Logging configuration for the sampling engine."""

import logging
import sys

import config


def setup_logging(level: str | None = None) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (default: settings.LOG_LEVEL)
    """
    level = level or config.settings.LOG_LEVEL
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )
