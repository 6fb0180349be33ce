"""Central logging configuration for the service.

Logs go to stdout so they work under Docker and Uvicorn alike.
Configuration is read from environment variables rather than typed Settings,
so logging can be configured before settings validation has a chance to fail.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from datetime import UTC, datetime
from typing import Any

# Extras copied into JSON records when middleware or services attach them.
JSON_EXTRA_KEYS = (
    "method",
    "path",
    "query",
    "status_code",
    "duration_ms",
    "client_ip",
    "user_agent",
    "error_type",
    "user_id",
    "provider",
)


def env_bool(name: str, *, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with a fixed set of whitelisted extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        for key in JSON_EXTRA_KEYS:
            value = record.__dict__.get(key)
            if value is not None:
                payload[key] = str(value) if key == "user_id" else value

        return json.dumps(payload, ensure_ascii=False)


def configure_logging() -> None:
    """Configure stdlib logging for warden + uvicorn.

    Env vars:
    - LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    - LOG_JSON: true/false (default: false)
    - LOG_REQUESTS: true/false (default: true)
    - LOG_UVICORN_ACCESS: true/false
        - if unset: false when LOG_REQUESTS=true, otherwise true.
    """

    level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json = env_bool("LOG_JSON", default=False)
    log_requests = env_bool("LOG_REQUESTS", default=True)
    uvicorn_access = env_bool("LOG_UVICORN_ACCESS", default=not log_requests)

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            },
            "json": {
                "()": "warden.core.logging.JsonFormatter",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if log_json else "text",
                "stream": sys.stdout,
            }
        },
        "root": {"handlers": ["console"], "level": level},
        "loggers": {
            "uvicorn": {"level": level, "propagate": True},
            "uvicorn.error": {"level": level, "propagate": True},
            "uvicorn.access": {
                "level": "INFO" if uvicorn_access else "WARNING",
                "propagate": True,
            },
            # Provider token exchanges are chatty at INFO.
            "httpx": {
                "level": os.getenv("HTTPX_LOG_LEVEL", "WARNING"),
                "propagate": True,
            },
            "sqlalchemy.engine": {
                "level": os.getenv("SQL_LOG_LEVEL", "WARNING"),
                "propagate": True,
            },
        },
    }

    logging.config.dictConfig(config)
