"""Typed failures raised by the matching core.

Every error carries the process exit status the CLI reports for it. Library
callers catch ``LicenseMatchError`` (or a subclass); nothing in the core calls
``sys.exit``.
"""
from __future__ import annotations


class LicenseMatchError(Exception):
    exit_code: int = 1


class EmptyInputError(LicenseMatchError):
    """Query text normalized to zero tokens / shingles."""
    exit_code = 3

    def __init__(self, message: str = "input contains no matchable text") -> None:
        super().__init__(message)


class DuplicateEntryError(LicenseMatchError):
    exit_code = 8

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"duplicate corpus entry id: {entry_id!r}")
        self.entry_id = entry_id


class VersionMismatchError(LicenseMatchError):
    """Cache was written by a matcher with another format version or shingle width."""
    exit_code = 5

    def __init__(self, found: int, expected: int, what: str = "format version") -> None:
        super().__init__(f"cache {what} {found} does not match expected {expected}")
        self.found = found
        self.expected = expected


class CacheCorruptError(LicenseMatchError):
    exit_code = 6


class InvalidThresholdError(LicenseMatchError):
    exit_code = 7

    def __init__(self, value: float) -> None:
        super().__init__(f"minimum score must be within [0.0, 1.0], got {value!r}")
        self.value = value


class MatchCancelledError(LicenseMatchError):
    """Raised between entries when the caller's cancel flag or deadline trips."""
    exit_code = 9
