"""Tests for structured logging and request_id / run_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from payment_storage.core.logging import (
    CorrelationFilter,
    JsonFormatter,
    bind_run_id,
    latency_bucket_ms,
    log_event,
    request_id_ctx_var,
)
from payment_storage.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="payment_storage"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert len({r.request_id for r in records}) == 1


def test_log_event_picks_up_context_ids(caplog):
    rid_token = request_id_ctx_var.set("rid-1")
    try:
        with bind_run_id("run-1"), caplog.at_level(logging.INFO, logger="payment_storage"):
            log_event("info", "user.updated", user_id="user-1", customer_id="cus-1", event_type="user.updated")
    finally:
        request_id_ctx_var.reset(rid_token)

    record = next(r for r in caplog.records if r.getMessage() == "user.updated")
    assert record.request_id == "rid-1"
    assert record.run_id == "run-1"
    assert record.user_id == "user-1"


def test_log_event_truncates_extra_values(caplog):
    with caplog.at_level(logging.INFO, logger="payment_storage"):
        log_event("warning", "sync.user_failed", extra={"detail": "x" * 2000})

    record = next(r for r in caplog.records if r.getMessage() == "sync.user_failed")
    assert record.detail.endswith("...<truncated>")
    assert len(record.detail) < 600


def test_json_formatter_includes_correlation_fields():
    record = logging.LogRecord("payment_storage", logging.INFO, __file__, 1, "sync.completed", None, None)
    record.user_id = "user-1"
    record.error_code = "version_conflict"

    with bind_run_id("run-42"):
        CorrelationFilter().filter(record)
    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "sync.completed"
    assert payload["run_id"] == "run-42"
    assert payload["request_id"] is None
    assert payload["user_id"] == "user-1"
    assert payload["error_code"] == "version_conflict"
    assert "customer_id" not in payload


def test_latency_buckets():
    assert latency_bucket_ms(None) == "unknown"
    assert latency_bucket_ms(3) == "<10ms"
    assert latency_bucket_ms(250) == "100-500ms"
    assert latency_bucket_ms(5000) == ">=1000ms"
