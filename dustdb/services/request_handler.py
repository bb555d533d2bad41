"""Request Handler: parse one line, dispatch to storage, build one response.

Invariants:
    - Never raises: every failure becomes an ErrorResponse
    - DustDBError messages are sent to the client; any other exception is logged
      with traceback and answered with a generic "internal error"
    - Every request and every response emits one audit log event
    - Synchronous: filesystem calls block the caller (run it in a worker thread
      from async code)

Design Decisions:
    - Explicit dict from request type to handler method, like a route table
    - Audit events are log records with extras, replacing dedicated log files
"""

import logging

from dustdb.core.commands import (
    CreateRequest, ErrorResponse, FindRequest, PingRequest, Request, Response,
)
from dustdb.core.errors import DustDBError, ParseError
from dustdb.core.parse_request import parse_request
from dustdb.core.responses import error, ok
from dustdb.infrastructure.pile_storage import PileStorage

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "internal error"


class RequestHandler:
    """Routes parsed requests to PileStorage. One instance shared by all connections."""

    def __init__(self, storage: PileStorage):
        self._storage = storage
        self._handlers = {
            CreateRequest: self._handle_create,
            PingRequest: self._handle_ping,
            FindRequest: self._handle_find,
        }

    def handle_line(self, line: str, peer: str = "-") -> Response:
        """Full request cycle for one decoded line."""
        payload_bytes = len(line.encode("utf-8"))
        try:
            request = parse_request(line)
        except ParseError as e:
            logger.error(
                "request rejected",
                extra={
                    "peer": peer, "command": line,
                    "payload_bytes": payload_bytes, "error_code": e.code,
                },
            )
            return self._respond(error(e.to_wire_message()), peer)

        logger.info(
            "request received",
            extra={"peer": peer, "command": line, "payload_bytes": payload_bytes},
        )
        return self._respond(self.dispatch(request), peer)

    def dispatch(self, request: Request) -> Response:
        handler = self._handlers[type(request)]
        try:
            return handler(request)
        except DustDBError as e:
            logger.warning(
                f"{request.verb.value} failed: {e.message}",
                extra={"error_code": e.code},
            )
            return error(f"{_failure_prefix(request)}: {e.to_wire_message()}")
        except Exception as e:
            logger.error(
                f"Unhandled exception during {request.verb.value}: {e}",
                exc_info=True,
            )
            return error(INTERNAL_ERROR_MESSAGE)

    # ─── Handlers ────────────────────────────────────────────────

    def _handle_create(self, request: CreateRequest) -> Response:
        record_id = self._storage.create(request.pile, request.data)
        return ok(record_id)

    def _handle_ping(self, request: PingRequest) -> Response:
        return ok()

    def _handle_find(self, request: FindRequest) -> Response:
        encoded = self._storage.find(request.pile, request.field, request.compare)
        return ok(encoded)

    def _respond(self, response: Response, peer: str) -> Response:
        if isinstance(response, ErrorResponse):
            level, message = logging.ERROR, response.error
        else:
            level, message = logging.INFO, response.message
        logger.log(
            level, "response sent",
            extra={
                "peer": peer, "exit_code": response.exit_code.value,
                "response": message,
            },
        )
        return response


def _failure_prefix(request: Request) -> str:
    if isinstance(request, CreateRequest):
        return "could not create record"
    if isinstance(request, FindRequest):
        return "could not find record"
    return f"could not handle {request.verb.value}"
