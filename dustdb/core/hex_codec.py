"""Hex Codec: reversible text <-> lowercase hex for the line protocol.

Invariants:
    - encode output is lowercase and exactly 2x the UTF-8 byte length
    - decode accepts upper or lower case hex digits and nothing else
    - decode is strict: invalid UTF-8 raises DecodeError, never substitutes U+FFFD
"""

import string

from dustdb.core.errors import DecodeError

_HEX_DIGITS = frozenset(string.hexdigits)


def encode_utf8_to_hex(text: str) -> str:
    return text.encode("utf-8").hex()


def decode_hex_to_utf8(hex_text: str) -> str:
    """Decode a hex string back to text. Raises DecodeError on any malformed input."""
    if len(hex_text) % 2 != 0:
        raise DecodeError(f"hex payload has odd length ({len(hex_text)})")

    # bytes.fromhex tolerates whitespace between pairs; the wire format does not.
    for index, char in enumerate(hex_text):
        if char not in _HEX_DIGITS:
            pair_start = index - index % 2
            raise DecodeError(
                f"invalid hex pair {hex_text[pair_start:pair_start + 2]!r} "
                f"at offset {pair_start}"
            )

    raw = bytes.fromhex(hex_text)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(
            f"payload is not valid UTF-8 (byte {e.start}: {e.reason})"
        ) from e
