"""Structured Logging - JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (batch_size, index, error_code, stage, ...) surfaced when present
    - JSON format in production, human-readable in development
    - The library never calls setup_logging itself; the host application does

Design Decisions:
    - Stdlib logging + small JSONFormatter, no logging dependency
    - setup_logging is idempotent: a second call replaces, never duplicates, its handler
"""

import json
import logging
from datetime import datetime, timezone

from bulkpipe.config import get_settings

_EXTRA_KEYS = (
    "batch_size", "index", "indexes", "error_code", "stage",
    "duration_ms", "handler", "violations", "defect",
)

_HANDLER_NAME = "bulkpipe"


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str | None = None, fmt: str | None = None) -> logging.Handler:
    """Configure root logging for a host application.

    level and fmt default to BULKPIPE_LOG_LEVEL and BULKPIPE_LOG_FORMAT.
    """
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
