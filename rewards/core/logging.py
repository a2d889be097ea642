"""
One JSON object per log line, shared by the web app and the batch jobs.

Structured context goes through `extra=`; only the keys in EXTRA_FIELDS are
emitted so that ad-hoc attributes never leak tokens or addresses into logs.
"""
import json
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime, timezone

from rewards.core.config import Settings

# Chatty client libraries; their per-request INFO lines add nothing to job output
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


class JsonFormatter(logging.Formatter):
    """Render a record as JSON, keeping whitelisted extras."""

    EXTRA_FIELDS = (
        "user_id", "slack_id", "email", "record_id", "order_id", "item_id",
        "request_id", "path", "method", "status_code", "latency_ms",
        "tokens", "seconds", "trust_level", "platforms", "policy",
        "count", "batch", "deleted", "inserted", "error",
    )

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service

        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(settings: Settings, service: str = "web") -> None:
    """Install the JSON handlers on the root logger. Safe to call more than once."""
    formatter = JsonFormatter(service=service)
    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    handlers: list[logging.Handler] = [stream]
    if settings.log_file:
        rotating = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        rotating.setFormatter(formatter)
        handlers.append(rotating)

    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    root.handlers = handlers
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
