# storesync/core/logging_config.py
"""
Centralized logging configuration for the application.

Library loggers that log every request or statement are held at WARNING so
sync progress and webhook outcomes stay readable.
"""

import logging

from storesync.core.config import get_settings

NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "sqlalchemy",
    "sqlalchemy.engine",
    "asyncpg",
    "aiosqlite",
)


def configure_logging(log_level: str = None):
    """
    Configure logging for the application.

    Args:
        log_level: Level name; defaults to settings.LOG_LEVEL
    """
    log_level = (log_level or get_settings().LOG_LEVEL).upper()
    level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("storesync").setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at level: {log_level}")
