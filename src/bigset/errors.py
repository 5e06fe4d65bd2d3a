"""Exception taxonomy for set store operations."""

from __future__ import annotations


class BigsetError(Exception):
    """Base exception for bigset; catch this for any package-raised error.

    ``count`` is the affected count a failed call reports. It is always the
    sentinel ``-1`` so callers that track counts can tell failure from an
    operation that legitimately touched zero rows.
    """

    count: int = -1


class ValidationError(BigsetError):
    """Raised when a set name cannot be used as a table identifier."""


class EncodingError(BigsetError):
    """Raised when an element cannot be reduced to, or rebuilt from, bytes."""


class BackingStoreError(BigsetError):
    """Raised when SQLite reports a failure; the sqlite3 error is chained."""


class CancellationError(BigsetError):
    """Raised when a cancel token fires before or during an operation."""


class StoreClosedError(BigsetError):
    """Raised when a store is closed a second time."""


__all__ = [
    "BackingStoreError",
    "BigsetError",
    "CancellationError",
    "EncodingError",
    "StoreClosedError",
    "ValidationError",
]
