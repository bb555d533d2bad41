"""Pile Storage: one directory per pile, one file per record.

Invariants:
    - Layout is <storage_root>/<pile>/<record_id>.<extension>
    - Record files hold the decoded plaintext, not hex
    - No cache or index: every find re-lists the directory and re-reads files
    - All OSError mapped to StorageIOError (core/errors.py)
    - A missing pile is an empty pile, never an error

Design Decisions:
    - find() is built on find_first_matching(pile, predicate) so the linear scan
      can be swapped for an index without touching the protocol layer
    - Non-string field values count as "no match" and the scan continues
    - A record that is not valid UTF-8 or JSON aborts the scan (InvalidRecordError),
      including JSON the decoder refuses for size or depth
    - Directory created by a failed create() is left in place (no rollback)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable

from dustdb.config import Settings
from dustdb.core.errors import (
    DecodeError, InvalidPayloadError, InvalidRecordError,
    RecordNotFoundError, StorageIOError,
)
from dustdb.core.hex_codec import decode_hex_to_utf8, encode_utf8_to_hex
from dustdb.core.identifiers import generate_record_id, is_record_id

logger = logging.getLogger(__name__)

RecordPredicate = Callable[[Any], bool]


class PileStorage:
    """Maps (pile, record id) to files and implements create / find / read."""

    def __init__(
        self, storage_root: Path, extension: str,
        id_factory: Callable[[], str] = generate_record_id,
    ):
        self.storage_root = Path(storage_root)
        self.extension = extension
        self._id_factory = id_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> "PileStorage":
        return cls(settings.storage_root, settings.data_format)

    def pile_path(self, pile: str) -> Path:
        return self.storage_root / pile.lower()

    def record_path(self, pile: str, record_id: str) -> Path:
        return self.pile_path(pile) / f"{record_id}.{self.extension}"

    # ─── Operations ──────────────────────────────────────────────

    def create(self, pile: str, hex_data: str) -> str:
        """Decode hex_data and store it as a new record. Returns the record id."""
        record_id = self._id_factory()

        try:
            plaintext = decode_hex_to_utf8(hex_data)
        except DecodeError as e:
            raise InvalidPayloadError(e.message) from e

        pile_dir = self.pile_path(pile)
        try:
            pile_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create pile directory {pile_dir}: {e}")
            raise StorageIOError(_describe(e), "create pile") from e

        path = self.record_path(pile, record_id)
        try:
            path.write_bytes(plaintext.encode("utf-8"))
        except OSError as e:
            logger.error(f"Could not write record {path}: {e}")
            raise StorageIOError(_describe(e), "write record") from e

        logger.debug(
            "record created", extra={"pile": pile, "record_id": record_id},
        )
        return record_id

    def find(self, pile: str, field: str, compare: str) -> str:
        """Return hex of the first record whose `field` equals `compare`, or ''."""
        def matches(document: Any) -> bool:
            if not isinstance(document, dict):
                return False
            value = document.get(field)
            return isinstance(value, str) and value == compare

        match = self.find_first_matching(pile, matches)
        if match is None:
            return ""
        return encode_utf8_to_hex(match)

    def find_first_matching(
        self, pile: str, predicate: RecordPredicate,
    ) -> str | None:
        """Scan a pile in filesystem order; return the raw text of the first match."""
        pile_dir = self.pile_path(pile)
        if not pile_dir.is_dir():
            return None

        try:
            with os.scandir(pile_dir) as entries:
                for entry in entries:
                    if not entry.is_file():
                        continue
                    content = self._read_record_text(Path(entry.path))
                    try:
                        document = json.loads(content)
                    except (ValueError, RecursionError) as e:
                        raise InvalidRecordError(entry.name, str(e)) from e
                    if predicate(document):
                        return content
        except OSError as e:
            logger.error(f"Could not scan pile {pile_dir}: {e}")
            raise StorageIOError(_describe(e), "scan pile") from e
        return None

    def read(self, pile: str, record_id: str) -> str:
        """Return the plaintext content of one record."""
        if not is_record_id(record_id):
            raise RecordNotFoundError(pile, record_id)
        path = self.record_path(pile, record_id)
        if not path.is_file():
            raise RecordNotFoundError(pile, record_id)
        return self._read_record_text(path)

    # ─── Helpers ─────────────────────────────────────────────────

    def _read_record_text(self, path: Path) -> str:
        try:
            raw = path.read_bytes()
        except OSError as e:
            logger.error(f"Could not read record {path}: {e}")
            raise StorageIOError(_describe(e), "read record") from e
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidRecordError(path.name, "not valid UTF-8") from e


def _describe(error: OSError) -> str:
    """OS error text without the absolute path."""
    return error.strerror or error.__class__.__name__
