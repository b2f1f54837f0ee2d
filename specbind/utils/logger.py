"""Logging setup"""
import logging
import os
import sys
from typing import Optional

import colorama
from colorama import Fore, Style

colorama.init()

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
DATE_FORMAT = '%H:%M:%S'

_level_override: Optional[str] = None


class ColoredFormatter(logging.Formatter):
    """Colors the level name of each record"""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, '')
        original = record.levelname
        record.levelname = f"{color}{original}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _resolve_level() -> int:
    name = _level_override or os.environ.get('SPECBIND_LOG_LEVEL', 'INFO')
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str) -> logging.Logger:
    """Get a logger writing colored records to stderr"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(_resolve_level())
    return logger


def set_log_level(level: str) -> None:
    """Change the level of every logger created by setup_logger"""
    global _level_override
    _level_override = level

    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.name.startswith('specbind'):
            logger.setLevel(_resolve_level())
