from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from jsondb.domain.models import (
    DataSchema,
    DebugInfo,
    IntegrityReport,
    Record,
    ValidationResult,
)


class DatabaseManager(ABC):
    """
    Abstract base class for the document store API consumed by list, form,
    schema and debug views.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the storage (data folder, index file) and start background tasks."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Stop background tasks."""
        pass

    @abstractmethod
    async def create(self, record: Record) -> Record:
        """
        Validate and store a new record, assigning ``id`` and ``createdAt`` if absent.
        Re-creating an existing id replaces the record.
        """
        pass

    @abstractmethod
    async def read(self, record_id: str) -> Optional[Record]:
        """Get a record by id, or None if unknown or unreadable."""
        pass

    @abstractmethod
    async def read_all(self) -> List[Record]:
        """Get every readable record, in index order."""
        pass

    @abstractmethod
    async def update(self, record_id: str, changes: Record) -> Optional[Record]:
        """Merge ``changes`` into an existing record. The id never changes."""
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Delete a record. Returns False if the id is unknown."""
        pass

    @abstractmethod
    async def search(self, query: str, field: Optional[str] = None) -> List[Record]:
        """Case-insensitive substring search in one field or in the whole record."""
        pass

    @abstractmethod
    async def load_schema(self) -> Optional[DataSchema]:
        """Get the active schema, or None for a schema-less store."""
        pass

    @abstractmethod
    async def save_schema(self, schema: DataSchema) -> None:
        """Persist the schema without touching records."""
        pass

    @abstractmethod
    async def apply_schema(self, schema: DataSchema) -> Dict[str, List[str]]:
        """
        Persist the schema and re-validate every record against it.
        Returns the validation errors per record id; records are never modified.
        """
        pass

    @abstractmethod
    async def validate(self, record: Record, schema: Optional[DataSchema] = None) -> ValidationResult:
        """Validate a record against ``schema`` or the active schema."""
        pass

    @abstractmethod
    async def check_integrity(self) -> IntegrityReport:
        """Cross-check the index against the record files."""
        pass

    @abstractmethod
    async def debug_snapshot(self) -> DebugInfo:
        """Record count, storage locations and size statistics."""
        pass
