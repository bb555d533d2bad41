"""Response Encoder: typed outcome -> one protocol line.

Invariants:
    - Format is "<exit_code> <message>"; errors prefix the message with "Error: "
    - An Ok without message still carries the separator space ("0 ")
    - Newlines inside a message are flattened so the response stays one line
"""

from dustdb.core.commands import ErrorResponse, OkResponse, Response

ERROR_PREFIX = "Error: "


def serialize_response(response: Response) -> str:
    if isinstance(response, ErrorResponse):
        body = f"{ERROR_PREFIX}{response.error}"
    else:
        body = response.message or ""
    return f"{response.exit_code.value} {_single_line(body)}"


def ok(message: str | None = None) -> OkResponse:
    return OkResponse(message=message)


def error(message: str) -> ErrorResponse:
    return ErrorResponse(error=message)


def _single_line(text: str) -> str:
    return text.replace("\r", " ").replace("\n", " ")
