"""
Exception hierarchy for the contacts and relationships packages.

    ContactsError (base)
    ├── MalformedInputError      - unparseable field, reference or value type
    ├── StructuralMismatchError  - referenced contact missing from the graph
    ├── HostIOError              - storage read/write failure
    └── ConfigurationError       - host context or settings not initialised

Batch operations catch the first three and report them; ConfigurationError
always propagates.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Machine-readable error codes."""
    # Malformed input (MAL_*)
    MAL_FIELD = "MAL_FIELD"
    MAL_REFERENCE = "MAL_REFERENCE"
    MAL_VALUE_TYPE = "MAL_VALUE_TYPE"
    MAL_SECTION = "MAL_SECTION"

    # Graph (GRF_*)
    GRF_UNRESOLVED = "GRF_UNRESOLVED"

    # Host storage (IO_*)
    IO_READ = "IO_READ"
    IO_WRITE = "IO_WRITE"
    IO_NOT_FOUND = "IO_NOT_FOUND"
    IO_INVALID_NAME = "IO_INVALID_NAME"

    # Configuration (CFG_*)
    CFG_MISSING = "CFG_MISSING"
    CFG_INVALID = "CFG_INVALID"

    UNKNOWN = "UNKNOWN"


class ContactsError(Exception):
    """Base exception carrying a message, a code and optional details."""

    default_code = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for batch reports."""
        data = {
            "error": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            data["details"] = self.details
        return data

    def __str__(self) -> str:
        return self.message


class MalformedInputError(ContactsError):
    """An input item could not be parsed; callers skip it."""
    default_code = ErrorCode.MAL_FIELD


class StructuralMismatchError(ContactsError):
    """A relationship points at a contact that is not in the graph."""
    default_code = ErrorCode.GRF_UNRESOLVED


class HostIOError(ContactsError):
    """The host storage layer failed to read or write."""
    default_code = ErrorCode.IO_WRITE


class ConfigurationError(ContactsError):
    """Required host context was not initialised before use."""
    default_code = ErrorCode.CFG_MISSING
