"""Structured Logging: formatters and setup for request/response audit events.

Invariants:
    - Timestamps are the event time (record.created), UTC, ISO-8601
    - Audit extras (peer, command, payload_bytes, exit_code, ...) are rendered
      in both formats when present, and omitted when absent
    - setup_logging owns at most one root handler; a second call replaces it

Design Decisions:
    - setup_logging called once by an entry point; library modules only call
      logging.getLogger(__name__) and pass audit data through `extra`
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

AUDIT_FIELDS = (
    "peer", "command", "payload_bytes", "exit_code", "error_code",
    "pile", "record_id", "address", "response",
)
_HANDLER_MARKER = "_dustdb_handler"


def audit_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Audit fields attached to a record via `extra`, in AUDIT_FIELDS order."""
    return {
        key: record.__dict__[key]
        for key in AUDIT_FIELDS
        if record.__dict__.get(key) is not None
    }


def _event_time(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()


class JSONFormatter(logging.Formatter):
    """One JSON object per line: base fields, audit extras, exception."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": _event_time(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **audit_extras(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class AuditTextFormatter(logging.Formatter):
    """Human-readable line with audit extras appended as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{_event_time(record)} {record.levelname} {record.name}: "
            f"{record.getMessage()}"
        )
        extras = audit_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v!r}" for k, v in extras.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO", fmt: str = "json", stream: TextIO | None = None,
) -> logging.Handler:
    """Install the DustDB root handler and return it."""
    for existing in list(logging.root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stderr)
    setattr(handler, _HANDLER_MARKER, True)
    handler.setFormatter(JSONFormatter() if fmt == "json" else AuditTextFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
