"""Exception taxonomy for roster operations.

Parsing and reconciliation report failures as typed results; these
exceptions are raised at the storage and network boundaries and converted to
``{success: false, error}`` responses by :mod:`guildroster.service`.
"""

from __future__ import annotations


class RosterError(RuntimeError):
    """Base class for roster failures."""


class ExportParseError(RosterError):
    """Raised when an addon export cannot be decoded."""

    MARKER_NOT_FOUND = "marker_not_found"
    TERMINATOR_NOT_FOUND = "terminator_not_found"
    INVALID_JSON = "invalid_json"
    NOT_A_LIST = "not_a_list"

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class RosterFormatError(RosterError):
    """Stored roster is neither a member array nor ``{members: [...]}``."""


class RosterIOError(RosterError):
    """Missing file or filesystem failure at the storage boundary."""


class RosterValidationError(RosterError):
    """Malformed save payload."""


class RaiderIOError(RosterError):
    """Raider.IO request failed or returned an unexpected body."""
