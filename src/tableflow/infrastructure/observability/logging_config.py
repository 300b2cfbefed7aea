from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from tableflow.api.middleware.request_id import get_request_id
from tableflow.infrastructure.observability.otel import current_trace_id

# Context passed through `extra=` that is worth keeping in the JSON line.
CONTEXT_FIELDS = frozenset(
    {
        "method",
        "path",
        "status_code",
        "duration_ms",
        "order_id",
        "order_number",
        "attempted",
        "attempt",
        "from_status",
        "status",
        "event_type",
        "audience",
        "channel",
        "room",
        "role",
    }
)

# uvicorn's own access log duplicates request_complete.
_SILENCED_LOGGERS = ("uvicorn.access",)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
            "trace_id": current_trace_id(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key in CONTEXT_FIELDS and value is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging() -> None:
    root_logger = logging.getLogger()
    if any(isinstance(handler.formatter, JsonFormatter) for handler in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root_logger.handlers = [handler]
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    for name in _SILENCED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
