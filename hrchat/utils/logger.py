"""
Logging setup for HR Chat.

All modules log under the "hrchat" namespace so the service can be tuned with a
single LOG_LEVEL variable (or the log_level config key at startup).
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logger = logging.getLogger("hrchat")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(console_handler)

# Uvicorn installs its own root handlers; keep ours from printing twice
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional component name (appended to 'hrchat', e.g. 'actions.dispatcher')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"hrchat.{name}")
    return logger


def set_log_level(level: str) -> None:
    """Change the level of the whole hrchat logger tree at runtime."""
    logger.setLevel(level.upper())
