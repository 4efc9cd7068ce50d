"""JSON logging for the API process and the notification worker.

Every line carries the service identity, the request correlation id and the
domain keys ``project_id``, ``task_id`` and ``user_id`` (``null`` when the
record has none), so one project's history can be pulled from the logs with a
single filter. Any other ``extra`` values are nested under ``context``.
"""

from __future__ import annotations

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any

from .config import Settings
from .context import get_request_id

DOMAIN_KEYS = ("project_id", "task_id", "user_id")

_STANDARD_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
    "request_id",
}

# The access line is written by CorrelationIdMiddleware on ``taskflow.access``.
_QUIET_LOGGERS = ("uvicorn.access",)
_FOREIGN_LOGGERS = ("uvicorn", "uvicorn.error", "rq", "rq.worker", "rq.scheduler")


class TaskflowJsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def __init__(self, *, service: str, environment: str, version: str) -> None:
        super().__init__()
        self._identity = {"service": service, "environment": environment, "version": version}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            **self._identity,
        }
        for key in DOMAIN_KEYS:
            payload[key] = getattr(record, key, None)

        context = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and key not in DOMAIN_KEYS
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except TypeError:
        return str(value)
    return value


class RequestContextFilter(logging.Filter):
    """Stamp the bound correlation id on each record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.request_id = get_request_id()
        return True


def configure_logging(settings: Settings) -> None:
    """Route the root, ``taskflow`` and server/worker loggers to one JSON handler."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.captureWarnings(True)

    loggers: dict[str, Any] = {
        "": {"handlers": ["json"], "level": level},
        "taskflow": {"handlers": ["json"], "level": level, "propagate": False},
    }
    for name in _FOREIGN_LOGGERS:
        loggers[name] = {"handlers": ["json"], "level": level, "propagate": False}
    for name in _QUIET_LOGGERS:
        loggers[name] = {"handlers": ["json"], "level": logging.WARNING, "propagate": False}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": TaskflowJsonFormatter,
                    "service": settings.project_name,
                    "environment": settings.environment,
                    "version": settings.version,
                }
            },
            "filters": {"request_context": {"()": RequestContextFilter}},
            "handlers": {
                "json": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                    "filters": ["request_context"],
                }
            },
            "loggers": loggers,
        }
    )


__all__ = ["DOMAIN_KEYS", "RequestContextFilter", "TaskflowJsonFormatter", "configure_logging"]
