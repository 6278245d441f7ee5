"""
The index: an ordered JSON array of ``{"id", "filePath"}`` objects.

The index is the authoritative list of records. It is always rewritten as a
whole, through a temp file, so a crash never leaves a half-written index.
The caller is responsible for serializing load/modify/save sequences.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles
import aiofiles.os
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from jsondb.domain.errors import MalformedIndexError, StorageError
from jsondb.domain.models import IndexEntry

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(List[IndexEntry])


class IndexStore:
    def __init__(self, index_path: Path):
        self.index_path = index_path

    async def exists(self) -> bool:
        return await aiofiles.os.path.isfile(self.index_path)

    async def load(self) -> List[IndexEntry]:
        """
        Read the index. A missing file is an empty index; anything that is
        not a JSON array of entries raises MalformedIndexError.
        """
        try:
            async with aiofiles.open(self.index_path, "r", encoding="utf-8") as f:
                content = await f.read()
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read index: {e}", path=str(self.index_path)) from e

        try:
            return _ENTRIES.validate_json(content)
        except PydanticValidationError as e:
            raise MalformedIndexError(
                f"Index file {self.index_path} is malformed: {e}", path=str(self.index_path)
            ) from e

    async def save(self, entries: Sequence[IndexEntry]) -> None:
        payload = json.dumps(
            [entry.model_dump(by_alias=True) for entry in entries],
            indent=2,
            ensure_ascii=False,
        )
        tmp_path = self.index_path.with_name(f"{self.index_path.name}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.index_path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise StorageError(f"Failed to write index: {e}", path=str(self.index_path)) from e

    async def find(self, record_id: str) -> Optional[IndexEntry]:
        for entry in await self.load():
            if entry.id == record_id:
                return entry
        return None

    async def upsert(self, record_id: str, location: str) -> None:
        """
        Point ``record_id`` at ``location``: update the existing entry in place,
        or append a new one.
        """
        entries = await self.load()
        for entry in entries:
            if entry.id == record_id:
                entry.file_path = location
                break
        else:
            entries.append(IndexEntry(id=record_id, file_path=location))
        await self.save(entries)

    async def remove(self, record_id: str) -> bool:
        """
        Drop the entry for ``record_id``. Returns False (and leaves the file
        untouched) if there was none.
        """
        entries = await self.load()
        for i, entry in enumerate(entries):
            if entry.id == record_id:
                del entries[i]
                await self.save(entries)
                return True
        return False
