"""
Pydantic models for the JSON document store.

This module defines all data models used throughout the store, including:
- Store settings
- Schema fields and the schema document itself
- Index entries mapping record identifiers to files
- Result objects returned by validation, integrity checks and debug snapshots

Records themselves are NOT modelled: a record is an open-ended, ordered
``dict`` whose shape is only checked against the active schema.

Persisted JSON uses the camelCase names of the on-disk format (``filePath``,
``indexFields``, ``defaultValue``); Python code uses snake_case attributes.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from jsondb.domain.errors import SchemaEditError


# A stored document. Insertion order of keys is preserved end to end.
Record = Dict[str, Any]

ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"

FieldType = Literal["string", "number", "boolean", "date", "array", "object", "text"]


# ---------------------------------------------------------------------------
# Store Configuration
# ---------------------------------------------------------------------------


class StoreSettings(BaseModel):
    """
    Configuration of a single store instance.

    File names are resolved inside ``data_folder``. The embedding application
    decides where ``data_folder`` lives; relative paths are taken as-is.
    """

    data_folder: str = Field(
        default="tdd-lab-data",
        description="Directory holding record files, the index and the schema.",
    )
    index_file: str = Field(
        default="data-index.json",
        description="File name of the index inside the data folder.",
    )
    schema_file: Optional[str] = Field(
        default="data-schema.json",
        description="File name of the schema inside the data folder. None disables schema persistence.",
    )
    cache_sweep_interval_seconds: float = Field(
        default=300,
        ge=1,
        description="How often (in seconds) the search cache is cleared.",
    )
    invalidate_cache_on_write: bool = Field(
        default=False,
        description="If True, the search cache is also cleared after every create/update/delete.",
    )
    seed_default_schema: bool = Field(
        default=False,
        description="If True, initialize() writes the default schema when none exists yet.",
    )


# ---------------------------------------------------------------------------
# Schema Models
# ---------------------------------------------------------------------------


class SchemaField(BaseModel):
    """
    A single field definition in the schema.

    System fields (identifier, creation time) may be edited but never removed.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        description="Field name, unique within the schema.",
    )
    type: FieldType = Field(
        default="string",
        description="Declared value type.",
    )
    required: bool = Field(
        default=False,
        description="If True, records missing this field fail validation.",
    )
    default_value: Optional[Any] = Field(
        default=None,
        alias="defaultValue",
        description="Suggested value for editors creating new records.",
    )
    description: Optional[str] = Field(
        default=None,
        description="Human readable description shown by editors.",
    )
    system: bool = Field(
        default=False,
        description="If True, the field cannot be removed from the schema.",
    )


class DataSchema(BaseModel):
    """
    The active schema document.

    ``index_fields`` is a display/query hint for editors; the store does not
    maintain a secondary index for them. ``version`` is bumped by whoever
    edits the schema, never by the store.

    Persisted at: <DATA_FOLDER>/data-schema.json
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(
        default="Untitled schema",
        description="Schema display name.",
    )
    description: str = Field(
        default="",
        description="Longer description of the records this schema covers.",
    )
    fields: List[SchemaField] = Field(
        default_factory=list,
        description="Ordered field definitions.",
    )
    index_fields: List[str] = Field(
        default_factory=list,
        alias="indexFields",
        description="Names of fields editors should treat as lookup keys.",
    )
    version: int = Field(
        default=1,
        description="Edit counter maintained by the schema editor.",
    )

    @model_validator(mode="after")
    def _check_field_names(self) -> "DataSchema":
        seen = set()
        for field in self.fields:
            if field.name in seen:
                raise ValueError(f"Duplicate field name: {field.name}")
            seen.add(field.name)
        unknown = [name for name in self.index_fields if name not in seen]
        if unknown:
            raise ValueError(f"Index fields not defined in schema: {', '.join(unknown)}")
        return self

    def get_field(self, name: str) -> Optional[SchemaField]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    # -- editing helpers ---------------------------------------------------
    # Each helper returns a new schema; the original is left untouched.

    def add_field(self, field: SchemaField) -> "DataSchema":
        if not field.name.strip():
            raise SchemaEditError("Field name cannot be empty")
        if self.get_field(field.name) is not None:
            raise SchemaEditError(f'Field "{field.name}" already exists')
        return self.model_copy(update={"fields": [*self.fields, field.model_copy()]})

    def update_field(self, name: str, field: SchemaField) -> "DataSchema":
        """
        Replace the definition of ``name`` with ``field``, keeping its position.

        Renaming is allowed as long as the new name is not already taken.
        Index field references follow a rename.
        """
        if self.get_field(name) is None:
            raise SchemaEditError(f'Field "{name}" does not exist')
        if not field.name.strip():
            raise SchemaEditError("Field name cannot be empty")
        if field.name != name and self.get_field(field.name) is not None:
            raise SchemaEditError(f'Field "{field.name}" already exists')

        fields = [field.model_copy() if f.name == name else f for f in self.fields]
        index_fields = [field.name if n == name else n for n in self.index_fields]
        return self.model_copy(update={"fields": fields, "index_fields": index_fields})

    def remove_field(self, name: str) -> "DataSchema":
        field = self.get_field(name)
        if field is None:
            raise SchemaEditError(f'Field "{name}" does not exist')
        if field.system:
            raise SchemaEditError(f'System field "{name}" cannot be removed')
        return self.model_copy(
            update={
                "fields": [f for f in self.fields if f.name != name],
                "index_fields": [n for n in self.index_fields if n != name],
            }
        )

    def toggle_index_field(self, name: str) -> "DataSchema":
        if self.get_field(name) is None:
            raise SchemaEditError(f'Field "{name}" does not exist')
        if name in self.index_fields:
            index_fields = [n for n in self.index_fields if n != name]
        else:
            index_fields = [*self.index_fields, name]
        return self.model_copy(update={"index_fields": index_fields})

    def bump_version(self) -> "DataSchema":
        return self.model_copy(update={"version": self.version + 1})

    @classmethod
    def from_json(cls, text: str) -> "DataSchema":
        """
        Parse schema JSON as typed into an editor.

        Raises SchemaEditError for anything that is not a schema object with a
        ``fields`` array, including pydantic validation failures.
        """
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaEditError(f"Invalid JSON: {e}") from e
        if not isinstance(raw, dict) or not isinstance(raw.get("fields"), list):
            raise SchemaEditError("Invalid schema structure: 'fields' must be an array")
        try:
            return cls.model_validate(raw)
        except ValueError as e:
            raise SchemaEditError(str(e)) from e


def default_schema() -> DataSchema:
    """
    The stock schema written by ``initialize()`` when seeding is enabled.
    """
    return DataSchema(
        name="Default schema",
        description="Automatically created default schema",
        fields=[
            SchemaField(
                name=ID_FIELD,
                type="string",
                required=True,
                description="Unique record identifier",
                system=True,
            ),
            SchemaField(
                name="title",
                type="string",
                required=True,
                default_value="Untitled",
                description="Record title",
            ),
            SchemaField(
                name="content",
                type="text",
                required=False,
                description="Record content",
            ),
            SchemaField(
                name=CREATED_AT_FIELD,
                type="date",
                required=True,
                description="Creation time",
                system=True,
            ),
        ],
        index_fields=[ID_FIELD, "title"],
        version=1,
    )


# ---------------------------------------------------------------------------
# Index Models
# ---------------------------------------------------------------------------


class IndexEntry(BaseModel):
    """
    One row of the index: where the record with ``id`` is stored.

    ``file_path`` is relative to the data folder.
    Persisted in: <DATA_FOLDER>/data-index.json (JSON array, order preserved)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    file_path: str = Field(alias="filePath")


# ---------------------------------------------------------------------------
# Result Models
# ---------------------------------------------------------------------------


class ValidationResult(BaseModel):
    valid: bool = True
    errors: List[str] = Field(default_factory=list)


class IntegrityReport(BaseModel):
    valid: bool = True
    issues: List[str] = Field(default_factory=list)


class LargestItem(BaseModel):
    id: str = ""
    size: int = 0


class StorageStats(BaseModel):
    """Byte sizes of record files listed in the index."""

    model_config = ConfigDict(populate_by_name=True)

    total_size: int = Field(default=0, alias="totalSize")
    avg_item_size: int = Field(default=0, alias="avgItemSize")
    largest_item: LargestItem = Field(default_factory=LargestItem, alias="largestItem")


class DebugInfo(BaseModel):
    """
    Snapshot returned by ``debug_snapshot()``.

    ``storage_stats`` is None when the sizes could not be computed.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_items: int = Field(alias="totalItems")
    data_folder: str = Field(alias="dataFolder")
    index_file: str = Field(alias="indexFile")
    last_updated: str = Field(alias="lastUpdated")
    index_size: int = Field(alias="indexSize")
    storage_stats: Optional[StorageStats] = Field(default=None, alias="storageStats")
