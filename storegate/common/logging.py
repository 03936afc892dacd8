import json
import logging
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any

# Third-party loggers that log per request at INFO (credential lookup, retries)
QUIET_LOGGERS: tuple[str, ...] = ("botocore", "boto3", "s3transfer", "urllib3")


def build_logging_config(level: str = "INFO") -> dict[str, Any]:
    loggers: dict[str, Any] = {
        name: {"level": "WARNING"} for name in QUIET_LOGGERS
    }
    loggers["storegate.startup"] = {
        "handlers": ["startup"],
        "level": "INFO",
        "propagate": False,
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JsonFormatter},
            "plain": {"format": "%(levelname)s %(name)s: %(message)s"},
        },
        "handlers": {
            "json_stream": {"class": "logging.StreamHandler", "formatter": "json"},
            "startup": {"class": "logging.StreamHandler", "formatter": "plain"},
        },
        "root": {"level": level, "handlers": ["json_stream"]},
        "loggers": loggers,
    }


def setup_logging(level: str = "INFO") -> None:
    dictConfig(build_logging_config(level))


class JsonFormatter(logging.Formatter):
    """One JSON object per line; fields passed as ``extra={"extra": {...}}`` are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        structured = getattr(record, "extra", None)
        if isinstance(structured, dict):
            payload.update(structured)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
