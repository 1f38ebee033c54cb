"""
Structured logging configuration.

Production logs are one JSON object per line. Request-scoped identifiers
passed through `extra=` (request, viewer, video, playlist ids) become
top-level keys so log pipelines can filter on them.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

CONTEXT_FIELDS = ("request_id", "viewer_id", "video_id", "playlist_id")

DEBUG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "opentelemetry", "httpx")


class JsonFormatter(logging.Formatter):
    """Render a log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, record.__dict__[name]) for name in CONTEXT_FIELDS if name in record.__dict__
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(debug: bool = False) -> None:
    """Install a single stdout handler on the root logger."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(DEBUG_FORMAT) if debug else JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").handlers = [handler]
