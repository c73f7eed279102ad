"""
Structured logging for the payment storage service.

Two correlation ids travel through context variables:
- request_id, bound per HTTP request by RequestIdMiddleware
- run_id, bound for the duration of one synchronization batch

Production emits one JSON object per line; everything else gets a
single-line human format.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional

LOGGER_NAME = "payment_storage"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
run_id_ctx_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

# Optional record attributes copied into JSON output when present
DOMAIN_FIELDS = ("user_id", "customer_id", "event_type", "error_code")


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def get_run_id(default: Optional[str] = None) -> Optional[str]:
    run_id = run_id_ctx_var.get()
    return run_id if run_id is not None else default


@contextmanager
def bind_run_id(run_id: str) -> Iterator[str]:
    """Bind run_id to every log record emitted inside the block."""
    token = run_id_ctx_var.set(run_id)
    try:
        yield run_id
    finally:
        run_id_ctx_var.reset(token)


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    if latency_ms is None:
        return "unknown"
    for bound, label in ((10, "<10ms"), (100, "10-100ms"), (500, "100-500ms"), (1000, "500-1000ms")):
        if latency_ms < bound:
            return label
    return ">=1000ms"


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z')


class CorrelationFilter(logging.Filter):
    """Fill request_id / run_id from context unless the caller passed them."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        if getattr(record, "run_id", None) is None:
            record.run_id = get_run_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "run_id": getattr(record, "run_id", None),
        }
        payload.update(
            (key, getattr(record, key)) for key in DOMAIN_FIELDS if getattr(record, key, None) is not None
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        tags = "".join(
            f" [{label}={value}]"
            for label, value in (("rid", getattr(record, "request_id", None)), ("run", getattr(record, "run_id", None)))
            if value
        )
        user_id = getattr(record, "user_id", None)
        suffix = f" user={user_id}" if user_id else ""
        line = f"{_timestamp(record)} {record.levelname} [payment_storage]{tags} {record.getMessage()}{suffix}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(env: str = "development") -> None:
    """Install a single stdout handler on the service logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(CorrelationFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # Keep uvicorn's own access/error lines out of ours
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.error").propagate = False


def _safe_truncate(value, limit: int = 500):
    try:
        text = str(value)
    except Exception:
        return "<unserializable>"
    if len(text) <= limit:
        return text
    return text[:limit] + "...<truncated>"


def log_event(
    level: str,
    msg: str,
    *,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
):
    """Emit a structured event carrying the current correlation ids."""

    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"))

    payload = {
        "request_id": request_id or get_request_id(),
        "run_id": get_run_id(),
        "user_id": user_id,
        "customer_id": customer_id,
    }
    if event_type:
        payload["event_type"] = event_type
    if error_code:
        payload["error_code"] = error_code
    if extra:
        payload.update((k, _safe_truncate(v)) for k, v in extra.items())

    getattr(logger, level, logger.info)(msg, extra=payload)
