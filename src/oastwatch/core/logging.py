"""
OASTWatch Logging Configuration

Log records go to stderr (and optionally a rotating file) so that the
interaction records printed on stdout stay machine readable.
"""

import logging
import logging.config
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config import get_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class StructuredFormatter(logging.Formatter):
    """Formatter that renders a record's structured data as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        data = getattr(record, "structured_data", None)
        if not data:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(data.items()))
        return f"{line} [{pairs}]"


def setup_logging(log_level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """
    Configure the oastwatch and aiohttp loggers.

    Args:
        log_level: Level for oastwatch loggers; defaults to the configured level
        log_file: Also write to this rotating file; defaults to the configured path
    """
    settings = get_config().logging
    level = (log_level or settings.level).upper()

    if log_file is None and settings.file_path:
        log_file = Path(settings.file_path)

    handlers: Dict[str, Dict[str, Any]] = {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "structured",
            "stream": sys.stderr,
        }
    }
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "filename": str(log_file),
            "maxBytes": settings.max_file_size,
            "backupCount": settings.backup_count,
            "encoding": "utf-8",
        }
    names = list(handlers)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": StructuredFormatter,
                    "format": LOG_FORMAT,
                    "datefmt": DATE_FORMAT,
                }
            },
            "handlers": handlers,
            "loggers": {
                "oastwatch": {"level": level, "handlers": names, "propagate": False},
                # Connection chatter only matters when it fails
                "aiohttp": {"level": "WARNING", "handlers": names, "propagate": False},
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module (pass __name__)."""
    return logging.getLogger(name)


def log_structured(
    logger: logging.Logger, level: int, message: str, **structured_data: Any
) -> None:
    """
    Log a message carrying structured data.

    Args:
        logger: Logger instance
        level: Logging level
        message: Log message
        **structured_data: Values rendered after the message
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"structured_data": structured_data})
