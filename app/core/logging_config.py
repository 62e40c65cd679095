# app/core/logging_config.py
"""
Console logging for both entry points.

The level comes from LOG_LEVEL, or from ENVIRONMENT when unset (DEBUG in
development, INFO elsewhere). Level names are colored only for a developer
watching a terminal; deployed processes write plain lines for the log collector.
"""

import logging
import logging.config
import sys
from typing import Any, Dict, Optional

from app.core.config import Settings, settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(funcName)s():%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers and the level they are held at
QUIET_LOGGERS = {
    # httpx logs every request URL at INFO, API tokens included
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "aiohttp": "WARNING",
    # one INFO line per handled update
    "aiogram.event": "WARNING",
}


class LevelColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # copy, so other handlers still see the bare level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def use_colors(config: Settings, stream=None) -> bool:
    stream = stream or sys.stdout
    return config.ENVIRONMENT == "development" and stream.isatty()


def build_logging_config(level: Optional[str] = None, config: Settings = settings) -> Dict[str, Any]:
    """dictConfig schema for the given level, defaulting to the settings' level."""
    level = (level or config.log_level).upper()
    formatter_class = LevelColorFormatter if use_colors(config) else logging.Formatter

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"()": formatter_class, "fmt": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
                "formatter": "console",
            },
        },
        "root": {"level": level, "handlers": ["stdout"]},
        "loggers": {
            name: {"level": "INFO" if level == "DEBUG" and name == "aiogram.event" else quiet}
            for name, quiet in QUIET_LOGGERS.items()
        },
    }


def setup_logging(level: Optional[str] = None, config: Settings = settings) -> None:
    logging.config.dictConfig(build_logging_config(level, config))
