"""
Embedded, schema-validated JSON document store.

This package is responsible for:
* Persisting each record as its own ``<id>.json`` file.
* Keeping an ordered index of record ids to file locations.
* Validating records against an optional, editable schema.
* Caching search results, swept periodically.
* Auditing the index against the files on disk.
"""

from jsondb.domain.errors import (
    DocumentStoreError,
    MalformedIndexError,
    SchemaEditError,
    StorageError,
    ValidationError,
)
from jsondb.domain.models import DataSchema, SchemaField, StoreSettings, default_schema
from jsondb.storage.json_db_manager import JsonDatabaseManager

__all__ = [
    "DataSchema",
    "DocumentStoreError",
    "JsonDatabaseManager",
    "MalformedIndexError",
    "SchemaEditError",
    "SchemaField",
    "StorageError",
    "StoreSettings",
    "ValidationError",
    "default_schema",
]
