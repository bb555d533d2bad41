"""Structured Logging: tests for the JSON formatter and logging setup.

Tests cover:
    - JSON output carries the base fields and audit extras
    - Absent extras are omitted
    - Exceptions are rendered
    - Timestamps come from the event, not the formatting time
    - Text format appends audit extras as key=value
    - setup_logging honors level, format, and stream
"""

import io
import json
import logging
import sys
from datetime import datetime, timezone

import pytest

from dustdb.infrastructure.observability import (
    AuditTextFormatter, JSONFormatter, audit_extras, setup_logging,
)


def _record(msg="response sent", **extra):
    record = logging.LogRecord(
        "dustdb.test", logging.INFO, __file__, 1, msg, None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_contains_base_fields():
    payload = json.loads(JSONFormatter().format(_record()))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "dustdb.test"
    assert payload["message"] == "response sent"
    assert "timestamp" in payload


def test_json_includes_audit_extras():
    payload = json.loads(JSONFormatter().format(
        _record(peer="127.0.0.1:4000", exit_code=0, payload_bytes=12),
    ))
    assert payload["peer"] == "127.0.0.1:4000"
    assert payload["exit_code"] == 0
    assert payload["payload_bytes"] == 12
    assert "command" not in payload


def test_json_timestamp_is_event_time():
    record = _record()
    record.created = 0.0
    payload = json.loads(JSONFormatter().format(record))
    assert datetime.fromisoformat(payload["timestamp"]) == datetime(
        1970, 1, 1, tzinfo=timezone.utc,
    )


def test_audit_extras_skip_none_and_unknown_keys():
    record = _record(peer="p:1", exit_code=None, unrelated="x")
    assert audit_extras(record) == {"peer": "p:1"}


def test_text_format_appends_extras():
    line = AuditTextFormatter().format(_record(peer="10.0.0.1:9", exit_code=1))
    assert "INFO dustdb.test: response sent" in line
    assert line.endswith("peer='10.0.0.1:9' exit_code=1")


def test_text_format_without_extras():
    assert AuditTextFormatter().format(_record()).endswith("dustdb.test: response sent")


def test_json_renders_exception():
    try:
        raise ValueError("bad")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    payload = json.loads(JSONFormatter().format(record))
    assert "ValueError: bad" in payload["exception"]


@pytest.fixture
def restore_root_logger():
    root = logging.root
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.parametrize("fmt, formatter_type", [
    ("json", JSONFormatter),
    ("text", AuditTextFormatter),
])
def test_setup_logging(restore_root_logger, fmt, formatter_type):
    handler = setup_logging("warning", fmt)
    assert handler in logging.root.handlers
    assert type(handler.formatter) is formatter_type
    assert logging.root.level == logging.WARNING


def test_setup_logging_replaces_previous_handler(restore_root_logger):
    first = setup_logging("info", "json")
    second = setup_logging("info", "text")
    assert first not in logging.root.handlers
    assert second in logging.root.handlers


def test_setup_logging_writes_to_stream(restore_root_logger):
    stream = io.StringIO()
    setup_logging("info", "json", stream=stream)
    logging.getLogger("dustdb.test").info("request received", extra={"peer": "a:1"})
    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["message"] == "request received"
    assert payload["peer"] == "a:1"
