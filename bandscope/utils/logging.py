"""
Structured logging utilities for BandScope.

The bandscope command logs readable text to stderr; log files always
get one JSON object per record so per-track context survives.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Carries the stage logger name and, for records emitted through a
    context adapter, the ``context`` mapping (e.g. the track path).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Context attached through LoggerAdapter
        if hasattr(record, "context") and record.context:
            log_obj["context"] = record.context

        return json.dumps(log_obj, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter that colours the level name for a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format with color codes without touching the shared record."""
        color = self.COLORS.get(record.levelname, "")
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
) -> None:
    """
    Configure the root logger for the bandscope command.

    Analyzers, the engine and the loader only ask for named loggers; this
    is called once by the CLI with the ``logging`` config section.

    Args:
        level: Root level name (``--verbose`` passes DEBUG)
        log_format: "json" or "text" for the stderr handler
        log_file: Rotating JSON log file, parent directories created
        max_bytes: Rotation size of ``log_file``
        backup_count: Rotated files kept
        console_enabled: Attach the stderr handler
        colored: Colour level names (text format on stderr only)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers = []

    if log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"
        if colored and console_enabled:
            formatter = ColoredFormatter(fmt, datefmt)
        else:
            formatter = logging.Formatter(fmt, datefmt)

    if console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        # Always use JSON for file logging (easier to parse)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """Named logger, e.g. ``engine`` or ``analyzer.spectral``."""
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that attaches persistent context to every record.

    The context ends up in the ``context`` field of JSON log lines.
    """

    def process(
        self, msg: str, kwargs: Dict[str, Any]
    ) -> tuple[str, Dict[str, Any]]:
        """Add context to log record."""
        extra = dict(kwargs.get("extra") or {})
        context = dict(extra.get("context") or {})
        context.update(self.extra)
        extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


def create_logger_with_context(
    name: str, context: Dict[str, Any]
) -> LoggerAdapter:
    """
    Create a logger with persistent context.

    Args:
        name: Logger name
        context: Dictionary of context to add to all logs

    Returns:
        LoggerAdapter: Logger that includes context in all messages

    Example:
        logger = create_logger_with_context("engine", {"track": "vocals.wav"})
        logger.info("Analysis complete")
    """
    return LoggerAdapter(get_logger(name), context)
