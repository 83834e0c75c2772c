"""
Logging configuration
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from shared.config import settings

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# third-party logger -> minimum level
QUIET_LOGGERS = {
    'asyncpg': logging.WARNING,
    'aiohttp.access': logging.WARNING,
    'aiohttp.server': logging.INFO,
}


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger for the server process

    Args:
        level: Log level name; defaults to DEBUG when settings.DEBUG is on,
            otherwise settings.LOG_LEVEL
        log_file: Extra log file; defaults to settings.LOG_FILE (empty = none)
    """
    if level is None:
        level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL
    if log_file is None:
        log_file = settings.LOG_FILE or None

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_handler(logging.StreamHandler(sys.stdout), numeric_level, CONSOLE_FORMAT))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _handler(logging.FileHandler(log_file, encoding='utf-8'), numeric_level, FILE_FORMAT)
        )

    for name, minimum in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(max(minimum, numeric_level))

    root_logger.info(
        f"Logging configured: level={level}, file={log_file or 'none'}, environment={settings.ENVIRONMENT}"
    )
