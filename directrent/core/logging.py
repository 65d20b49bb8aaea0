"""
Structured logging: one JSON object per line.

Event names are the log message (snake_case); context goes in `extra=` and is
emitted only for whitelisted keys. The HTTP middleware binds the request id to
a context variable so unlock and payout logs carry it without threading it
through every call.
"""
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

from directrent.core.config import settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class JsonFormatter(logging.Formatter):
    EXTRA_FIELDS = (
        # http
        "request_id", "path", "method", "status_code", "latency_ms",
        # identity / quota / unlock
        "principal_id", "role", "tier", "ceiling", "target_id", "outcome",
        # payouts
        "provider_id", "payout_id", "amount", "payout_method", "reference",
        "current_balance", "new_balance", "old_status", "new_status",
        # retries, tasks, misc
        "reason", "attempt", "task_id", "delay_seconds", "count", "error",
    )

    def __init__(self, service: str = "directrent-api") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "event": record.getMessage(),
        }
        bound_request_id = request_id_var.get()
        if bound_request_id:
            entry["request_id"] = bound_request_id

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # Decimal amounts and datetimes fall back to str()
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(service: str = "directrent-api") -> None:
    formatter = JsonFormatter(service)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(
            RotatingFileHandler(
                settings.log_file,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(settings.log_level.upper())
    root.handlers = handlers
    # request_logging middleware already emits one line per request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
