"""Record Identifiers: random UUID-v4-shaped ids used as record filenames.

Invariants:
    - Output always matches 8-4-4-4-12 lowercase hex with version nibble 4
      and variant nibble in {8, 9, a, b}
    - 122 of 128 bits are random; uniqueness is probabilistic and never checked
      against existing files
"""

import re
import secrets
from typing import Callable

RECORD_ID_BYTES = 16
RECORD_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

# Hyphen goes after these byte counts: 4, 6, 8, 10 -> groups 8-4-4-4-12
_GROUP_BOUNDARIES = (4, 6, 8, 10)


def generate_record_id(
    random_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """Generate a fresh record id from 16 random bytes."""
    raw = bytearray(random_bytes(RECORD_ID_BYTES))
    if len(raw) != RECORD_ID_BYTES:
        raise ValueError(
            f"random source returned {len(raw)} bytes, expected {RECORD_ID_BYTES}"
        )
    raw[6] = (raw[6] & 0x0F) | 0x40  # version 4
    raw[8] = (raw[8] & 0x3F) | 0x80  # RFC 4122 variant

    groups = []
    start = 0
    for end in (*_GROUP_BOUNDARIES, RECORD_ID_BYTES):
        groups.append(raw[start:end].hex())
        start = end
    return "-".join(groups)


def is_record_id(value: str) -> bool:
    return RECORD_ID_PATTERN.match(value) is not None
