"""
Logging configuration for Tubely.

Modules log through ``logging.getLogger(__name__)``; this module decides what
those records look like once, at startup:

- JSONFormatter: one JSON object per line, for log shippers
- StandardFormatter: plain text, for a developer's terminal
- setup_logging: installs the chosen formatter on the root and uvicorn loggers
- add_log_context: binds fields such as video_id and user_id to a logger

Usage:
    from tubely.utils.logger import add_log_context, setup_logging

    setup_logging(log_level="INFO", json_logs=True)

    upload_logger = add_log_context(logger, video_id=str(video.id))
    upload_logger.info("Thumbnail stored")
"""

import json
import logging
import sys
import traceback

from datetime import UTC, datetime
from typing import Any


LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Chatty dependencies held at a higher level than the application
THIRD_PARTY_LOGGERS: list[str] = [
    "uvicorn.access",
    "motor",
    "pymongo",
    "boto3",
    "botocore",
    "s3transfer",
    "urllib3",
    "httpx",
    "httpcore",
    "multipart",
    "python_multipart",
    "asyncio",
]


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON objects.

    Fields passed through ``extra=`` or bound by ``add_log_context`` are
    collected under an ``extra`` key.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"tubely.services.upload_service","message":"Thumbnail stored",
         "extra":{"video_id":"550e8400-e29b-41d4-a716-446655440000"}}
    """

    # Attributes every LogRecord carries, never treated as extra fields
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        if record.stack_info:
            entry["stack_info"] = record.stack_info

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }
        if extra:
            entry["extra"] = extra

        # default=str keeps UUIDs, datetimes and paths serializable
        return json.dumps(entry, default=str, ensure_ascii=False, separators=(",", ":"))


class StandardFormatter(logging.Formatter):
    """Human-readable ``[TIMESTAMP] LEVEL logger: message`` lines."""

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure process-wide logging.

    Replaces the root logger's handlers with a single stdout handler, routes
    uvicorn's own loggers through the same formatter, and raises the level of
    noisy dependencies. Safe to call more than once.

    Args:
        log_level: Application log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Emit JSON lines when True, plain text otherwise.
        third_party_level: Level applied to the loggers in THIRD_PARTY_LOGGERS.
    """
    level = get_log_level_from_string(log_level)

    formatter: logging.Formatter
    if json_logs:
        formatter = JSONFormatter(include_source_location=level <= logging.DEBUG)
    else:
        formatter = StandardFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # uvicorn installs its own handlers; hand its records to the root handler
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    quiet_level = get_log_level_from_string(third_party_level)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s", logging.getLevelName(level), json_logs
    )


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its bound fields into each call's ``extra``.

    The stock adapter replaces ``extra`` outright; this one keeps the
    per-call fields and only fills in bound fields that are missing.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        for key, value in self.extra.items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **context: Any) -> ContextLoggerAdapter:
    """
    Bind context fields to every record logged through the returned adapter.

    Args:
        logger: The module logger to wrap.
        **context: Fields such as ``video_id`` or ``user_id``.

    Returns:
        ContextLoggerAdapter: Adapter logging through ``logger``.

    Example:
        upload_logger = add_log_context(logger, video_id="550e...", user_id="9b2f...")
        upload_logger.info("Video stored", extra={"key": "3f2a...c1.mp4"})
    """
    return ContextLoggerAdapter(logger, context)


def get_log_level_from_string(level_str: str) -> int:
    """Map a level name to its logging constant, defaulting to INFO."""
    return LOG_LEVEL_MAP.get(level_str.upper(), logging.INFO)


__all__ = [
    "LOG_LEVEL_MAP",
    "ContextLoggerAdapter",
    "JSONFormatter",
    "StandardFormatter",
    "add_log_context",
    "get_log_level_from_string",
    "setup_logging",
]
