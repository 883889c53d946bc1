"""
Logging setup for the notes server.

Production logs are single-line JSON objects so log aggregators can
index request fields (user_id, status, duration_ms) without parsing
message text. Local development can switch to plain text.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has; anything else came in through `extra`
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _RESERVED or key.startswith("_"):
            continue
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            value = str(value)
        fields[key] = value
    return fields


class StructuredJsonFormatter(logging.Formatter):
    """
    Formats each record as one JSON object.

    Fields: timestamp (UTC, ISO 8601, taken from the record), level,
    logger, message, exception (when present), then any extra context.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_extra_fields(record))
        return json.dumps(entry, default=str)


def configure_structured_logging(
    level: int | str = logging.INFO,
    logger_name: str | None = None,
    json_output: bool = True,
) -> logging.Logger:
    """
    Send a logger's output to stdout, replacing its existing handlers.

    Args:
        level: Level number or name ("DEBUG", "INFO", ...)
        logger_name: Logger to configure (default: root logger)
        json_output: JSON lines when True, plain text otherwise

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = StructuredJsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def get_storage_logger(name: str) -> logging.Logger:
    """Logger named noted_store.{name} for a storage component."""
    return logging.getLogger(f"noted_store.{name}")


class StorageLoggerAdapter(logging.LoggerAdapter):
    """Attaches fixed context (such as the owning user_id) to every record."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs
