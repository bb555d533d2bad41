"""Request Parser: one protocol line -> typed command.

Invariants:
    - Single space is the only delimiter; the last argument (data / compare)
      keeps the rest of the line verbatim, spaces included
    - An empty token counts as missing
    - Pile names are lowercased and must not escape the storage root
    - Raises ParseError, never returns None

Design Decisions:
    - Explicit dict from verb to argument parser (adding a verb requires editing it)
"""

from typing import Callable

from dustdb.core.commands import (
    CommandVerb, CreateRequest, FindRequest, PingRequest, Request,
)
from dustdb.core.errors import ParseError

_RESERVED_PILE_NAMES = frozenset({".", ".."})
_RESERVED_PILE_CHARS = ("/", "\\", "\x00")


def parse_request(line: str) -> Request:
    """Parse a single request line (terminator already stripped)."""
    if not line:
        raise ParseError("empty request")

    verb, _, rest = line.partition(" ")
    parser = _PARSERS.get(verb)
    if parser is None:
        raise ParseError(f"unknown command: {verb}")
    return parser(rest)


def normalize_pile_name(raw: str) -> str:
    """Lowercase a pile name and reject names that are not a single path segment."""
    pile = raw.lower()
    if pile in _RESERVED_PILE_NAMES or any(c in pile for c in _RESERVED_PILE_CHARS):
        raise ParseError(f"invalid pile name: {raw}")
    return pile


def _parse_create(rest: str) -> CreateRequest:
    pile, data = _split_args(rest, 2)
    if not pile:
        raise ParseError("missing pile")
    if not data:
        raise ParseError("missing data")
    return CreateRequest(pile=normalize_pile_name(pile), data=data)


def _parse_ping(rest: str) -> PingRequest:
    return PingRequest()


def _parse_find(rest: str) -> FindRequest:
    pile, field, compare = _split_args(rest, 3)
    if not pile:
        raise ParseError("missing pile")
    if not field:
        raise ParseError("missing field")
    if not compare:
        raise ParseError("missing compare")
    return FindRequest(
        pile=normalize_pile_name(pile), field=field, compare=compare,
    )


def _split_args(rest: str, count: int) -> list[str]:
    """Split into at most `count` tokens, padding missing ones with ''."""
    parts = rest.split(" ", count - 1) if rest else []
    return parts + [""] * (count - len(parts))


_PARSERS: dict[str, Callable[[str], Request]] = {
    CommandVerb.CREATE.value: _parse_create,
    CommandVerb.PING.value: _parse_ping,
    CommandVerb.FIND.value: _parse_find,
}
