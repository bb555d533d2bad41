"""Error Hierarchy: typed, categorized exceptions for all DustDB failure modes.

Invariants:
    - Every error has a code (str) and category (ErrorCategory)
    - Client-input errors (parse, decode, payload) are recoverable per request
    - No error is process-fatal: the request handler turns each one into a
      single "1 Error: ..." response line
    - to_wire_message() never includes tracebacks or host paths beyond the pile

Design Decisions:
    - Single hierarchy with DustDBError base: the request handler catches one type
    - StorageError subclasses replace a tagged union (Io / InvalidRecord / InvalidPayload)
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """High-level error categories for logging and handling."""
    VALIDATION = "validation"
    STORAGE = "storage"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFIGURATION = "configuration"


class DustDBError(Exception):
    """Base exception for all DustDB errors."""

    def __init__(self, message: str, code: str, category: ErrorCategory):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category

    def to_wire_message(self) -> str:
        return self.message


# ─── Client Input Errors ────────────────────────────────────────

class ParseError(DustDBError):
    """Request line could not be parsed into a command."""
    def __init__(self, message: str):
        super().__init__(message, "PARSE_ERROR", ErrorCategory.VALIDATION)


class DecodeError(DustDBError):
    """Hex payload is malformed or does not hold valid UTF-8."""
    def __init__(self, message: str):
        super().__init__(message, "DECODE_ERROR", ErrorCategory.VALIDATION)


# ─── Storage Errors ─────────────────────────────────────────────

class StorageError(DustDBError):
    """Base for storage engine failures."""


class StorageIOError(StorageError):
    """Filesystem operation failed (permissions, disk full, missing path)."""
    def __init__(self, message: str, operation: str):
        super().__init__(
            f"{operation} failed: {message}",
            "STORAGE_IO", ErrorCategory.STORAGE,
        )
        self.operation = operation


class InvalidRecordError(StorageError):
    """A stored record could not be parsed during a scan."""
    def __init__(self, record_name: str, reason: str):
        super().__init__(
            f"record {record_name} could not be parsed: {reason}",
            "INVALID_RECORD", ErrorCategory.STORAGE,
        )
        self.record_name = record_name


class InvalidPayloadError(StorageError):
    """CREATE payload failed hex or UTF-8 decoding."""
    def __init__(self, reason: str):
        super().__init__(
            f"invalid payload: {reason}",
            "INVALID_PAYLOAD", ErrorCategory.VALIDATION,
        )


class RecordNotFoundError(StorageError):
    """Requested record id does not exist in the pile."""
    def __init__(self, pile: str, record_id: str):
        super().__init__(
            f"record '{record_id}' not found in pile '{pile}'",
            "RECORD_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
        )
        self.pile = pile
        self.record_id = record_id


# ─── Configuration Errors ───────────────────────────────────────

class ConfigurationError(DustDBError):
    """Settings are missing or invalid at startup."""
    def __init__(self, message: str):
        super().__init__(message, "CONFIG_ERROR", ErrorCategory.CONFIGURATION)
