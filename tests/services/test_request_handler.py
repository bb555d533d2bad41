"""Request Handler: tests for dispatch and error mapping without sockets.

Tests cover:
    - CREATE then FIND returns the created record
    - PING is always "0 "
    - Parse errors and storage errors become "1 Error: ..." responses
    - Unexpected exceptions never escape and never leak details
    - Audit events are logged for requests and responses
"""

import logging

import pytest

from dustdb.core.commands import ErrorResponse, OkResponse, PingRequest
from dustdb.core.hex_codec import decode_hex_to_utf8
from dustdb.core.identifiers import is_record_id
from dustdb.core.responses import serialize_response
from dustdb.services.request_handler import INTERNAL_ERROR_MESSAGE, RequestHandler

ALICE_HEX = "7b226e616d65223a22616c696365227d"


@pytest.fixture
def handler(storage):
    return RequestHandler(storage)


def _line(handler, text):
    return serialize_response(handler.handle_line(text, "test:1"))


# ─── Commands ────────────────────────────────────────────────────

def test_create_then_find(handler):
    created = handler.handle_line(f"CREATE users {ALICE_HEX}")
    assert isinstance(created, OkResponse)
    assert is_record_id(created.message)

    found = handler.handle_line("FIND users name alice")
    assert isinstance(found, OkResponse)
    assert found.message == ALICE_HEX
    assert decode_hex_to_utf8(found.message) == '{"name":"alice"}'


def test_find_missing_pile_is_success(handler):
    assert _line(handler, "FIND nobody name alice") == "0 "


def test_ping_repeated(handler):
    handler.handle_line(f"CREATE users {ALICE_HEX}")
    for _ in range(3):
        assert _line(handler, "PING") == "0 "


def test_create_mixed_case_pile_found_lowercase(handler):
    handler.handle_line(f"CREATE Users {ALICE_HEX}")
    assert _line(handler, "FIND users name alice") == f"0 {ALICE_HEX}"


# ─── Errors ──────────────────────────────────────────────────────

@pytest.mark.parametrize("line, expected", [
    ("CREATE", "1 Error: missing pile"),
    ("CREATE users", "1 Error: missing data"),
    ("FIND users field", "1 Error: missing compare"),
    ("FOO", "1 Error: unknown command: FOO"),
    ("", "1 Error: empty request"),
])
def test_parse_errors(handler, line, expected):
    assert _line(handler, line) == expected


def test_create_invalid_payload(handler):
    line = _line(handler, "CREATE users zz")
    assert line.startswith("1 Error: could not create record: invalid payload")


def test_create_invalid_utf8_payload(handler):
    line = _line(handler, "CREATE users ff")
    assert line.startswith("1 Error: could not create record:")
    assert "UTF-8" in line


def test_find_corrupt_record(handler, storage):
    pile_dir = storage.pile_path("users")
    pile_dir.mkdir(parents=True)
    (pile_dir / "bad.json").write_text("{oops")

    line = _line(handler, "FIND users name alice")

    assert line.startswith("1 Error: could not find record: record bad.json")
    # handler still serves afterwards
    assert _line(handler, "PING") == "0 "


def test_find_record_rejected_by_decoder_is_invalid_record(handler, storage):
    pile_dir = storage.pile_path("users")
    pile_dir.mkdir(parents=True)
    (pile_dir / "huge.json").write_text('{"n": ' + "9" * 5000 + "}")

    line = _line(handler, "FIND users name alice")

    assert line.startswith(
        "1 Error: could not find record: record huge.json could not be parsed"
    )


def test_unexpected_exception_is_contained(handler, storage, monkeypatch):
    def boom(*args):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(storage, "find", boom)
    response = handler.handle_line("FIND users name alice")

    assert isinstance(response, ErrorResponse)
    assert response.error == INTERNAL_ERROR_MESSAGE


def test_dispatch_accepts_typed_request(handler):
    assert handler.dispatch(PingRequest()) == OkResponse()


# ─── Audit logging ───────────────────────────────────────────────

def test_audit_events_logged(handler, caplog):
    with caplog.at_level(logging.INFO, logger="dustdb.services.request_handler"):
        handler.handle_line("PING", "10.0.0.1:5000")

    events = [(r.getMessage(), r.levelno) for r in caplog.records]
    assert ("request received", logging.INFO) in events
    assert ("response sent", logging.INFO) in events
    received = next(r for r in caplog.records if r.getMessage() == "request received")
    assert received.peer == "10.0.0.1:5000"
    assert received.command == "PING"
    assert received.payload_bytes == 4


def test_rejected_request_logged_as_error(handler, caplog):
    with caplog.at_level(logging.INFO, logger="dustdb.services.request_handler"):
        handler.handle_line("BOGUS")

    rejected = [r for r in caplog.records if r.getMessage() == "request rejected"]
    assert len(rejected) == 1
    assert rejected[0].levelno == logging.ERROR
    assert rejected[0].error_code == "PARSE_ERROR"
