"""Structured logging utility with JSON output."""

import logging
import json
import sys
import os
from datetime import datetime, timezone
from typing import Any, Dict


MAX_VALUE_LENGTH = 500
SECRET_KEYS = ("api_key", "apikey", "authorization")


def _sanitize(key: str, value: Any) -> Any:
    """Make an extra field safe and JSON serializable."""
    if any(secret in key.lower() for secret in SECRET_KEYS):
        return f"<redacted: {len(str(value))} chars>"

    # Never log raw image payloads
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes: {len(value)} bytes>"
    if isinstance(value, str) and value.startswith("data:") and len(value) > 64:
        return f"{value[:40]}...<data uri: {len(value)} chars>"

    if isinstance(value, (list, tuple)):
        return [_sanitize(key, item) for item in value]

    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        str_value = str(value)
        if len(str_value) > MAX_VALUE_LENGTH:
            return str_value[:MAX_VALUE_LENGTH] + "...[truncated]"
        return str_value


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    # Fields that Python's logging adds automatically (exclude these)
    BUILTIN_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs',
        'pathname', 'process', 'processName', 'relativeCreated',
        'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
        'taskName', 'message',
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self.BUILTIN_ATTRS and not key.startswith('_'):
                log_data[key] = _sanitize(key, value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, log_level, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

        # Prevent propagation to root logger
        logger.propagate = False

    return logger
