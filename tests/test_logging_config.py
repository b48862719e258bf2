"""Tests for structured log formatting."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from infra.logging_config import (
    JsonFormatter,
    StructuredLogger,
    TextFormatter,
    clear_request_context,
    get_request_context,
    set_request_context,
    setup_logging,
)


def _record(caplog: pytest.LogCaptureFixture) -> logging.LogRecord:
    assert len(caplog.records) == 1
    return caplog.records[0]


def test_structured_logger_attaches_event_and_fields(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="pihistory.test")
    StructuredLogger("pihistory.test").info("history_query_completed", total_records=7, ms=3)

    record = _record(caplog)
    assert record.getMessage() == "history_query_completed"
    assert record.event == "history_query_completed"  # type: ignore[attr-defined]
    assert record.fields == {"total_records": 7, "ms": 3}  # type: ignore[attr-defined]


def test_json_formatter_merges_fields_and_request_context(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="pihistory.test")
    clear_request_context()
    set_request_context(request_id="req-1", path="/api/history")
    try:
        StructuredLogger("pihistory.test").info("http_request", status=200)
        payload = json.loads(JsonFormatter(extra_fields={"service": "pihistory"}).format(_record(caplog)))
    finally:
        clear_request_context()

    assert payload["event"] == "http_request"
    assert payload["status"] == 200
    assert payload["request_id"] == "req-1"
    assert payload["path"] == "/api/history"
    assert payload["service"] == "pihistory"
    assert "fields" not in payload


def test_text_formatter_appends_key_values(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="pihistory.test")
    StructuredLogger("pihistory.test").info("history_query_rejected", detail="Missing params: pi")

    line = TextFormatter().format(_record(caplog))
    assert "| INFO | pihistory.test | history_query_rejected" in line
    assert line.endswith("| detail=Missing params: pi")


def test_exception_logs_traceback(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="pihistory.test")
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        StructuredLogger("pihistory.test").exception("unhandled_exception", detail="boom")

    payload = json.loads(JsonFormatter().format(_record(caplog)))
    assert payload["level"] == "ERROR"
    assert "RuntimeError: boom" in payload["exception"]


def test_request_context_is_copied() -> None:
    clear_request_context()
    set_request_context(request_id="a")
    ctx = get_request_context()
    ctx["request_id"] = "mutated"
    assert get_request_context() == {"request_id": "a"}
    clear_request_context()
    assert get_request_context() == {}


def test_setup_logging_survives_invalid_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CSV_TIMEOUT_SECONDS", "0")
    cfg = setup_logging(level="warning")
    assert cfg.level == "WARNING"
    assert cfg.json_logs is False
