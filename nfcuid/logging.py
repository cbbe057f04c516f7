"""
nfcuid logging

Configures the package logger: console output plus one log file per run.
"""

import logging
import os
from datetime import datetime
from typing import Optional

# Package logger, parent of every module logger
logger = logging.getLogger("nfcuid")

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_file_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"nfcuid_{now.strftime('%Y%m%d_%H%M%S')}.log"


def configure_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    format_str: Optional[str] = None,
    date_format: Optional[str] = None,
) -> Optional[str]:
    """
    Configure nfcuid logging.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO)
        log_dir: Directory for the log file, None for console only
        format_str: Log message format string
        date_format: Date format string

    Returns:
        Path of the log file, or None when file logging is off
    """
    formatter = logging.Formatter(
        format_str or DEFAULT_FORMAT,
        datefmt=date_format or DEFAULT_DATE_FORMAT,
    )

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)
    logger.setLevel(level)
    logger.propagate = False

    if not log_dir:
        return None

    try:
        os.makedirs(log_dir, exist_ok=True)
        log_path = os.path.join(log_dir, log_file_name())
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as e:
        logger.warning(f"File logging disabled, cannot use {log_dir}: {e}")
        return None

    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    logger.info(f"Logging to {log_path}")
    return log_path


def level_from_name(name: str) -> int:
    """Map 'debug'/'INFO'/... to a logging level, INFO when unknown."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def set_debug_enabled(enabled: bool):
    """
    Enable or disable debug logging.

    Args:
        enabled: True to enable debug logging, False for info level
    """
    level = logging.DEBUG if enabled else logging.INFO
    logger.setLevel(level)


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled."""
    return logger.level <= logging.DEBUG
