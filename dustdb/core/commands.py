"""Command Types: typed requests and responses exchanged over one connection.

Invariants:
    - Requests are immutable and live for a single connection
    - Pile names in requests are already lowercased
    - A Response serializes to exactly one line (no embedded newline added here)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class CommandVerb(str, Enum):
    """Verbs recognized by the line protocol (case-sensitive)."""
    CREATE = "CREATE"
    PING = "PING"
    FIND = "FIND"


class ExitCode(int, Enum):
    OK = 0
    ERROR = 1


# ─── Requests ────────────────────────────────────────────────────

@dataclass(frozen=True)
class CreateRequest:
    pile: str
    data: str

    verb = CommandVerb.CREATE


@dataclass(frozen=True)
class PingRequest:
    verb = CommandVerb.PING


@dataclass(frozen=True)
class FindRequest:
    pile: str
    field: str
    compare: str

    verb = CommandVerb.FIND


Request = Union[CreateRequest, PingRequest, FindRequest]


# ─── Responses ───────────────────────────────────────────────────

@dataclass(frozen=True)
class OkResponse:
    message: str | None = None
    exit_code: ExitCode = ExitCode.OK


@dataclass(frozen=True)
class ErrorResponse:
    error: str
    exit_code: ExitCode = ExitCode.ERROR


Response = Union[OkResponse, ErrorResponse]
