"""Logging for the scheduling core.

Every module logs through ``get_logger(__name__)`` under the ``clockalign``
namespace and attaches structured fields as ``extra={"context": {...}}``.
Nothing is written until ``setup_logging`` installs handlers, so callers that
embed the engine keep full control of their own logging.

Usage:
    from services.logging_setup import bind_context, get_logger, setup_logging

    setup_logging()  # console at the configured level, JSON file in log_dir
    logger = get_logger(__name__)

    log = bind_context(logger, participant_count=3, reference_date="2024-01-15")
    log.info("Golden windows found", extra={"context": {"best_times": 5}})
"""

import json
import logging
from datetime import date, datetime, timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Any, MutableMapping, Optional

ROOT_LOGGER_NAME = "clockalign"
LOG_FILE_NAME = "clockalign.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _json_default(value: Any) -> Any:
    """Serialize the enums and dates that appear in scheduling context."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _console_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, stamped with the record's UTC creation time."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=_json_default)


class ConsoleFormatter(logging.Formatter):
    """Short local-time lines with context rendered as ``key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        message = record.getMessage()

        context = getattr(record, "context", None)
        if context:
            fields = ", ".join(f"{k}={_console_value(v)}" for k, v in context.items())
            message += f" [{fields}]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return f"{timestamp} {record.levelname[:4]:4s} {record.name}: {message}"


class ContextAdapter(logging.LoggerAdapter):
    """Logger that merges fixed context fields into every record.

    Fields passed per call in ``extra={"context": ...}`` win over bound ones.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **(extra.get("context") or {})}
        kwargs["extra"] = extra
        return msg, kwargs


def bind_context(logger: logging.Logger, **context: Any) -> ContextAdapter:
    """Wrap ``logger`` so each record carries ``context``."""
    return ContextAdapter(logger, context)


_installed_handlers: list[logging.Handler] = []


def setup_logging(
    settings=None,
    console_level: Optional[int] = None,
    file_level: int = logging.DEBUG,
    log_to_file: bool = True,
) -> logging.Logger:
    """Install console and rotating JSON file handlers on the clockalign logger.

    Later calls return the already configured logger unchanged.

    Args:
        settings: Settings to read log_dir, log_level and debug from.
            Defaults to the cached settings
        console_level: Minimum console level. Defaults to DEBUG when debug is
            on, otherwise the configured log_level
        file_level: Minimum level for the JSON file (default: DEBUG)
        log_to_file: Set False to log to the console only

    Returns:
        The ``clockalign`` logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _installed_handlers:
        return root_logger

    # Import here to avoid circular dependency
    from services.settings import get_settings

    settings = settings or get_settings()
    if console_level is None:
        console_level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)

    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ConsoleFormatter())
    _installed_handlers.append(console_handler)

    log_file = None
    if log_to_file:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = settings.log_dir / LOG_FILE_NAME
        file_handler = RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(JSONFormatter())
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root_logger.addHandler(handler)

    root_logger.info(
        "Logging initialized",
        extra={"context": {"console_level": logging.getLevelName(console_level), "log_file": log_file}},
    )
    return root_logger


def shutdown_logging() -> None:
    """Remove and close the handlers installed by ``setup_logging``."""
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, under the clockalign namespace."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
