"""Logging configuration for chaussettes.

This module provides centralized logging configuration using Loguru.
Importing it replaces the default handler with a quiet console handler and a
rotating debug log file. Only the command line entry points import it, so the
library itself stays free of logging side effects.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_DIR = Path.home() / ".local" / "share" / "chaussettes" / "logs"
LOG_FILE = LOG_DIR / "chaussettes.log"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

logger.remove()  # Remove default handler

# Console stays at WARNING so rich output and the TUI are not interleaved with logs
_console_handler = logger.add(
    sys.stderr,
    format=CONSOLE_FORMAT,
    level="WARNING",
    backtrace=True,
    diagnose=False,
)

try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        LOG_FILE,
        rotation="1 MB",
        retention=10,
        compression="zip",
        format=FILE_FORMAT,
        level="DEBUG",
        backtrace=True,
        diagnose=False,
    )
except OSError as e:
    logger.warning(f"Could not create log directory {LOG_DIR}: {e}")


def enable_debug() -> None:
    """Switch the console handler to DEBUG level."""
    global _console_handler
    logger.remove(_console_handler)
    _console_handler = logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG",
        backtrace=True,
        diagnose=False,
    )


__all__ = ["LOG_DIR", "LOG_FILE", "enable_debug", "logger"]
