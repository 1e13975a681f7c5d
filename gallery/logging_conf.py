# gallery/logging_conf.py
from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.config import dictConfig
from typing import Any

# attributes every LogRecord carries; anything else came in through `extra=`
_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: level, logger, message, UTC time, plus any `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, val in vars(record).items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                payload[key] = val
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def logging_config(log_level: str | None = None) -> dict[str, Any]:
    """dictConfig payload shared by setup_logging() and the uvicorn runner."""
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        "loggers": {
            "uvicorn": {"level": level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": level, "handlers": ["console"], "propagate": False},
            # request lines come from the timing middleware instead
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "fastapi": {"level": level, "handlers": ["console"], "propagate": False},
            "gallery": {"level": level, "handlers": ["console"], "propagate": False},
            "request": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }


def setup_logging(log_level: str | None = None) -> None:
    """Configure JSON logging for gallery + uvicorn, suppress duplicate access logs."""
    dictConfig(logging_config(log_level))
