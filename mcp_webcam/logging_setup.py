"""
mcp-webcam - Logging Setup
All log output goes to stderr; stdout carries protocol messages only.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "asyncio")


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """
    Configure root logging for the server process.

    Args:
        level: Log level name used when not verbose
        verbose: If True, log at DEBUG
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )

    # Quiet down noisy libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
