"""
Logging configuration for processes embedding opsguard.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from opsguard.config import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL


def setup_logging(log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Console plus rotating file logging for the ``opsguard`` logger tree.

    Calling it again once handlers are attached leaves them as they are.
    """
    log_dir = log_dir or Path.home() / ".opsguard" / "logs"

    logger = logging.getLogger("opsguard")
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # File handler with rotation
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "opsguard.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Could not create file logger: {e}")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger
