"""
Logging configuration using Loguru
"""

from __future__ import annotations

import sys

from loguru import logger

from airguard import config

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure the stderr sink once per process.

    Streamlit re-executes the script on every interaction, so repeated
    calls are no-ops.
    """
    global _configured
    if _configured:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=(level or config.LOG_LEVEL).upper(),
        colorize=True,
    )
    _configured = True
