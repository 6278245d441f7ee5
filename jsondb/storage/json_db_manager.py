"""
JSON-file implementation of the document store.

Layout of the data folder:

    <id>.json          one file per record
    data-index.json    ordered array of {"id", "filePath"}
    data-schema.json   the active schema (absent until one is saved)

Every create/update/delete runs under one asyncio.Lock per store instance,
so two overlapping mutations cannot both load the index and have the second
save drop the first one's change. Reads take no lock.
"""
from __future__ import annotations

import asyncio
import copy
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import aiofiles.os

from jsondb.domain.errors import StorageError, ValidationError
from jsondb.domain.models import (
    CREATED_AT_FIELD,
    ID_FIELD,
    DataSchema,
    DebugInfo,
    IntegrityReport,
    LargestItem,
    Record,
    StorageStats,
    StoreSettings,
    ValidationResult,
    default_schema,
)
from jsondb.domain.record_utils import (
    format_as_table,
    generate_id,
    json_kind,
    match_record,
    to_stored_form,
)
from jsondb.services.caching import QueryCache
from jsondb.services.integrity import IntegrityChecker
from jsondb.storage.db_manager import DatabaseManager
from jsondb.storage.index_store import IndexStore
from jsondb.storage.record_store import RecordStore
from jsondb.storage.schema_registry import SchemaRegistry

logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonDatabaseManager(DatabaseManager):
    def __init__(self, data_dir: Optional[Path] = None, settings: Optional[StoreSettings] = None):
        self.settings = settings or StoreSettings()
        self._data_dir = Path(data_dir) if data_dir is not None else Path(self.settings.data_folder)

        schema_path = self._data_dir / self.settings.schema_file if self.settings.schema_file else None
        reserved = [self.settings.index_file, f"{self.settings.index_file}.tmp"]
        if self.settings.schema_file:
            reserved.append(self.settings.schema_file)
        self.records = RecordStore(self._data_dir, reserved)
        self.index = IndexStore(self._data_dir / self.settings.index_file)
        self.schemas = SchemaRegistry(schema_path)
        self.cache = QueryCache(self.settings.cache_sweep_interval_seconds)
        self.integrity = IntegrityChecker(self.index, self.records)

        self._write_lock = asyncio.Lock()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        """
        Ensure the data folder and an (empty) index exist, seed the default
        schema when configured, and start the cache sweep.
        """
        await aiofiles.os.makedirs(self._data_dir, exist_ok=True)

        if not await self.index.exists():
            logger.info(f"Creating new index file at: {self.index.index_path}")
            await self.index.save([])

        if self.settings.seed_default_schema and not await self.schemas.exists():
            logger.info(f"Creating default schema at: {self.schemas.schema_path}")
            await self.schemas.save(default_schema())

        self.cache.start()
        logger.info(f"Document store ready at {self._data_dir}")

    async def close(self) -> None:
        await self.cache.stop()

    async def __aenter__(self) -> "JsonDatabaseManager":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def clear_cache(self) -> None:
        self.cache.clear()

    def _after_write(self) -> None:
        if self.settings.invalidate_cache_on_write:
            self.cache.clear()

    # ========================================================================
    # Schema
    # ========================================================================

    async def load_schema(self) -> Optional[DataSchema]:
        return await self.schemas.load()

    async def save_schema(self, schema: DataSchema) -> None:
        await self.schemas.save(schema)

    async def validate(self, record: Record, schema: Optional[DataSchema] = None) -> ValidationResult:
        return await self.schemas.validate(record, schema)

    async def apply_schema(self, schema: DataSchema) -> Dict[str, List[str]]:
        await self.schemas.save(schema)

        warnings: Dict[str, List[str]] = {}
        for entry in await self.index.load():
            record = await self.records.read_location(entry.file_path)
            if record is None:
                warnings[entry.id] = [f"Unreadable record file: {entry.file_path}"]
                continue
            result = await self.schemas.validate(record, schema)
            if not result.valid:
                logger.warning(
                    f"Record {entry.id} does not match new schema: {', '.join(result.errors)}"
                )
                warnings[entry.id] = result.errors
        return warnings

    # ========================================================================
    # CRUD
    # ========================================================================

    def _normalize(self, record: Record) -> Record:
        try:
            return to_stored_form(record)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Record cannot be serialized: {e}") from e

    async def create(self, record: Record) -> Record:
        data = dict(record)
        record_id = data.get(ID_FIELD)
        if not record_id:
            data = {ID_FIELD: generate_id(), **{k: v for k, v in data.items() if k != ID_FIELD}}
            logger.debug(f"Generated ID for record: {data[ID_FIELD]}")
        elif not isinstance(record_id, str):
            raise ValidationError(
                [f"Invalid type for field {ID_FIELD}: expected string, got {json_kind(record_id)}"]
            )
        if CREATED_AT_FIELD not in data:
            data[CREATED_AT_FIELD] = _utc_timestamp()

        stored = self._normalize(data)
        validation = await self.schemas.validate(stored)
        if not validation.valid:
            raise ValidationError(validation.errors)

        async with self._write_lock:
            location = await self.records.write(stored[ID_FIELD], stored)
            await self.index.upsert(stored[ID_FIELD], location)
        self._after_write()

        logger.info(f"Created record {stored[ID_FIELD]}")
        return stored

    async def read(self, record_id: str) -> Optional[Record]:
        entry = await self.index.find(record_id)
        if entry is None:
            return None
        return await self.records.read_location(entry.file_path)

    async def _read_entries(self) -> List[Record]:
        items = []
        for entry in await self.index.load():
            record = await self.records.read_location(entry.file_path)
            if record is None:
                logger.error(f"Skipping unreadable record {entry.id} ({entry.file_path})")
                continue
            items.append(record)
        return items

    async def read_all(self) -> List[Record]:
        return await self._read_entries()

    async def get_raw_json(self, record_id: str) -> Optional[str]:
        """Raw file text of a record, as shown by the debug view."""
        entry = await self.index.find(record_id)
        if entry is None:
            return None
        return await self.records.read_raw(entry.file_path)

    async def update(self, record_id: str, changes: Record) -> Optional[Record]:
        async with self._write_lock:
            entry = await self.index.find(record_id)
            if entry is None:
                return None
            existing = await self.records.read_location(entry.file_path)
            if existing is None:
                return None

            merged = self._normalize({**existing, **changes, ID_FIELD: record_id})
            validation = await self.schemas.validate(merged)
            if not validation.valid:
                raise ValidationError(validation.errors)

            location = await self.records.write(record_id, merged)
            if location != entry.file_path:
                await self.index.upsert(record_id, location)
        self._after_write()

        logger.info(f"Updated record {record_id}")
        return merged

    async def delete(self, record_id: str) -> bool:
        async with self._write_lock:
            entry = await self.index.find(record_id)
            if entry is None:
                return False
            # The index entry is what counts; a leftover file is only logged.
            await self.records.remove(entry.file_path)
            removed = await self.index.remove(record_id)
        self._after_write()

        if removed:
            logger.info(f"Deleted record {record_id}")
        return removed

    async def create_sample_data(self) -> Record:
        """Create one demo record through the regular create path."""
        now = datetime.now()
        return await self.create(
            {
                ID_FIELD: generate_id(),
                "title": f"Sample item {now.strftime('%H:%M:%S')}",
                "content": "This is an automatically created sample record",
                CREATED_AT_FIELD: _utc_timestamp(),
            }
        )

    # ========================================================================
    # Search
    # ========================================================================

    async def search(self, query: str, field: Optional[str] = None) -> List[Record]:
        cached = self.cache.get(query, field)
        if cached is not None:
            return copy.deepcopy(cached)

        results = [item for item in await self._read_entries() if match_record(item, query, field)]
        self.cache.put(query, field, copy.deepcopy(results))
        return results

    # ========================================================================
    # Diagnostics
    # ========================================================================

    async def check_integrity(self) -> IntegrityReport:
        return await self.integrity.check()

    async def debug_snapshot(self) -> DebugInfo:
        entries = await self.index.load()
        index_content = json.dumps(
            [entry.model_dump(by_alias=True) for entry in entries],
            separators=(",", ":"),
            ensure_ascii=False,
        )

        storage_stats: Optional[StorageStats] = None
        try:
            total_size = 0
            largest = LargestItem()
            for entry in entries:
                size = await self.records.size(entry.file_path)
                if size is None:
                    continue
                total_size += size
                if size > largest.size:
                    largest = LargestItem(id=entry.id, size=size)

            storage_stats = StorageStats(
                total_size=total_size,
                avg_item_size=round(total_size / len(entries)) if entries else 0,
                largest_item=largest,
            )
        except OSError as e:
            logger.error(f"Error calculating storage stats: {e}")

        return DebugInfo(
            total_items=len(entries),
            data_folder=str(self._data_dir),
            index_file=self.settings.index_file,
            last_updated=datetime.now().isoformat(timespec="seconds"),
            index_size=len(index_content),
            storage_stats=storage_stats,
        )

    @staticmethod
    def format_as_table(records: Iterable[Record]) -> str:
        return format_as_table(records)
