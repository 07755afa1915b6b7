"""
Structured logging configuration for HSB News RSS.

Supports both JSON (for production) and human-readable (for development) formats.
Configure via environment variables:
- LOG_FORMAT: 'json' or 'text' (default: 'text')
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: 'INFO')
"""

import json
import logging
import os
import sys
from datetime import datetime, UTC
from pathlib import Path
from typing import Any

# LogRecord attributes that are never treated as extra context
STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in STANDARD_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """
    Formats records as single-line JSON objects with timestamp, level,
    logger, message and any extra context passed to the log call.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in _extra_fields(record).items():
            # Handle non-serializable objects
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Format: timestamp - logger - level - message [context_key=value ...]
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base_msg = f"{timestamp} - {record.name} - {record.levelname} - {record.getMessage()}"

        extra_parts = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        if extra_parts:
            base_msg += f" [{', '.join(extra_parts)}]"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


def get_log_level() -> int:
    """Get log level from environment variable."""
    level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_str, logging.INFO)


def get_log_format() -> str:
    """Get log format from environment variable."""
    return os.environ.get("LOG_FORMAT", "text").lower()


def setup_logging(
    log_dir: str | None = "logs",
    verbose: bool = False,
    log_format: str | None = None,
    log_level: int | None = None,
) -> None:
    """
    Setup logging configuration with support for JSON or text format.

    Args:
        log_dir: Directory for the log file (created if missing), None for console only
        verbose: If True, sets level to DEBUG (overrides LOG_LEVEL env var)
        log_format: 'json' or 'text' (overrides LOG_FORMAT env var)
        log_level: Logging level (overrides LOG_LEVEL env var and verbose flag)
    """
    if log_level is not None:
        level = log_level
    elif verbose:
        level = logging.DEBUG
    else:
        level = get_log_level()

    fmt = log_format if log_format is not None else get_log_format()
    formatter = JSONFormatter() if fmt == "json" else TextFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(Path(log_dir) / "hsb_news.log", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Use extra={'key': 'value'} when logging to add context fields.

    Example:
        logger = get_logger(__name__)
        logger.info("Refreshed feed", extra={'key': 'norr/hagern', 'items': 12})
    """
    return logging.getLogger(name)
