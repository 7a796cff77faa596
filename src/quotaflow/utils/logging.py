"""Logging setup for quotaflow.

Everything logs through the standard library under the ``quotaflow`` logger
namespace. `configure_logging()` is meant for entry points such as the CLI;
library callers that already configure logging keep their handlers and only
get the ``quotaflow`` level applied.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from quotaflow.core.exceptions import QuotaflowException

PACKAGE_LOGGER = "quotaflow"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return [_jsonable(item) for item in value]
    return value


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record, with `extra=` fields and error context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RECORD_ATTRS:
                continue
            payload[key] = _jsonable(value)

        if record.exc_info:
            error = record.exc_info[1]
            if isinstance(error, QuotaflowException):
                payload["error_type"] = type(error).__name__
                payload["error_context"] = error.context or {}
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(*, level: str = "INFO", json_logs: bool = False) -> None:
    """Apply `level` to quotaflow loggers and install a root handler if none exists.

    Args:
        level: Level for the ``quotaflow`` namespace (e.g. 'INFO', 'DEBUG').
        json_logs: If True, a newly installed handler emits JSON lines.
    """
    logging.getLogger(PACKAGE_LOGGER).setLevel(level.upper())

    root = logging.getLogger()
    if root.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter() if json_logs else logging.Formatter(PLAIN_FORMAT))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for `name`, nested under the ``quotaflow`` namespace."""
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
