"""Structured logging configuration using structlog."""

import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
from structlog.types import Processor

# Shared by structlog and foreign (stdlib) log records
_SHARED_PROCESSORS: list[Processor] = [
    structlog.processors.TimeStamper(fmt="ISO"),
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "openai", "openai.agents", "sqlalchemy.engine")

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*(B|KB|MB|GB)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024**2, "GB": 1024**3}


def setup_logging(
    level: str = "INFO",
    format_type: str = "structured",
    file_enabled: bool = True,
    file_path: str = "data/stockpulse.log",
    max_file_size: str = "10MB",
    backup_count: int = 5,
) -> None:
    """
    Set up application logging with structlog.

    Console output is human-readable. When file logging is enabled the file
    receives one JSON object per line for 'structured' format, or the same
    plain rendering as the console otherwise. Calling this again replaces
    the handlers installed by the previous call.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('structured' or 'plain')
        file_enabled: Whether to enable file logging
        file_path: Path to log file
        max_file_size: Maximum size of log file before rotation
        backup_count: Number of backup log files to keep
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())))
    root.addHandler(console)

    if file_enabled:
        file_renderer = (
            structlog.processors.JSONRenderer()
            if format_type == "structured"
            else structlog.dev.ConsoleRenderer(colors=False)
        )
        root.addHandler(
            _file_handler(file_path, max_file_size, backup_count, file_renderer)
        )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def _formatter(renderer: Processor) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def _file_handler(
    file_path: str, max_file_size: str, backup_count: int, renderer: Processor
) -> logging.Handler:
    """Rotating file handler rendering with ``renderer``."""
    log_file = Path(file_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_file,
        maxBytes=_parse_file_size(max_file_size),
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(_formatter(renderer))
    return handler


def _parse_file_size(size_str: str) -> int:
    """Parse a size such as '10MB' or '512' into bytes."""
    match = _SIZE_PATTERN.match(size_str)
    if not match:
        raise ValueError(f"Invalid file size: {size_str!r}")
    number, unit = match.groups()
    return int(number) * _SIZE_UNITS[(unit or "B").upper()]


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class LoggerMixin:
    """Mixin giving a class a logger bound to its component name."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(type(self).__module__).bind(
            component=type(self).__name__
        )


def log_error(error: Exception, **context: Any) -> None:
    """
    Log an unexpected error with structured context and its traceback.

    Args:
        error: The exception that occurred
        **context: Additional context
    """
    get_logger("stockpulse.error").error(
        "Unexpected error",
        error_type=type(error).__name__,
        error_message=str(error),
        exc_info=error,
        **context,
    )
