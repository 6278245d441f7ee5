"""Exception hierarchy for the document store.

Callers can catch ``DocumentStoreError`` for anything raised by the store, or
react to the specific categories below.
"""

from __future__ import annotations

from typing import Optional, Sequence

__all__ = [
    "DocumentStoreError",
    "ValidationError",
    "StorageError",
    "MalformedIndexError",
    "SchemaEditError",
]


class DocumentStoreError(RuntimeError):
    """Base exception for document store failures."""


class ValidationError(DocumentStoreError):
    """Raised when a record violates the active schema.

    ``errors`` holds every violation message, in the order they were found.
    """

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Data validation failed: {', '.join(self.errors)}")


class StorageError(DocumentStoreError):
    """Raised when a record, index or schema file cannot be read or written."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class MalformedIndexError(StorageError):
    """Raised when the index file exists but is not a valid list of entries."""


class SchemaEditError(DocumentStoreError):
    """Raised when a schema edit breaks a schema rule (duplicate name, system field...)."""
