"""
Persistence and validation for the single active schema.

A store without a schema file is schema-less: every record validates.
The schema is read from disk once and kept in memory; ``save`` updates both.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from jsondb.domain.errors import StorageError
from jsondb.domain.models import DataSchema, Record, ValidationResult
from jsondb.domain.record_utils import is_valid_date, json_kind

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "text": lambda v: isinstance(v, str),
    "number": _is_number,
    "boolean": lambda v: isinstance(v, bool),
    "date": is_valid_date,
    "array": lambda v: isinstance(v, (list, tuple)),
    "object": lambda v: isinstance(v, dict),
}


def validate_record(record: Record, schema: Optional[DataSchema]) -> ValidationResult:
    """
    Check ``record`` against ``schema`` and collect every violation.

    Missing required fields are reported first, then type mismatches, each
    in schema field order.
    """
    if schema is None:
        return ValidationResult(valid=True, errors=[])

    errors = []
    for field in schema.fields:
        if field.required and field.name not in record:
            errors.append(f"Missing required field: {field.name}")

    for field in schema.fields:
        if field.name not in record:
            continue
        value = record[field.name]
        if not _TYPE_CHECKS[field.type](value):
            errors.append(
                f"Invalid type for field {field.name}: expected {field.type}, got {json_kind(value)}"
            )

    return ValidationResult(valid=not errors, errors=errors)


class SchemaRegistry:
    def __init__(self, schema_path: Optional[Path]):
        self.schema_path = schema_path
        self._schema: Optional[DataSchema] = None
        self._loaded = False

    async def exists(self) -> bool:
        if self.schema_path is None:
            return False
        return await aiofiles.os.path.isfile(self.schema_path)

    async def load(self) -> Optional[DataSchema]:
        """
        Return the active schema, or None when none has been saved.

        An unreadable or invalid schema file is logged and treated as absent.
        """
        if self._loaded:
            return self._schema
        self._schema = await self._read_from_disk()
        self._loaded = True
        return self._schema

    async def _read_from_disk(self) -> Optional[DataSchema]:
        if self.schema_path is None:
            return None
        try:
            async with aiofiles.open(self.schema_path, "r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error loading schema from {self.schema_path}: {e}")
            return None

        try:
            return DataSchema.model_validate_json(content)
        except PydanticValidationError as e:
            logger.error(f"Invalid schema in {self.schema_path}: {e}")
            return None

    async def save(self, schema: DataSchema) -> None:
        if self.schema_path is None:
            logger.warning("No schema file configured; schema not persisted")
            self._schema = schema
            self._loaded = True
            return
        try:
            async with aiofiles.open(self.schema_path, "w", encoding="utf-8") as f:
                await f.write(schema.model_dump_json(by_alias=True, indent=2, exclude_none=True))
        except OSError as e:
            raise StorageError(f"Failed to write schema: {e}", path=str(self.schema_path)) from e
        self._schema = schema
        self._loaded = True

    async def validate(self, record: Record, schema: Optional[DataSchema] = None) -> ValidationResult:
        return validate_record(record, schema if schema is not None else await self.load())
