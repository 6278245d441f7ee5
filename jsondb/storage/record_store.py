"""
One JSON file per record.

Record files live directly in the data folder as ``<id>.json``. Locations
handed around by the index are paths relative to the data folder.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
import aiofiles.os

from jsondb.domain.errors import StorageError
from jsondb.domain.models import Record
from jsondb.domain.record_utils import dump_record

logger = logging.getLogger(__name__)


class RecordStore:
    """Reads and writes individual record files."""

    def __init__(self, data_dir: Path, reserved_names: Iterable[str] = ()):
        self.data_dir = data_dir
        # Index and schema files share the data folder with the records.
        self.reserved_names = frozenset(name.casefold() for name in reserved_names)

    def location_for(self, record_id: str) -> str:
        """Location (relative to the data folder) of the file for ``record_id``."""
        if not record_id or record_id in (".", "..") or "/" in record_id or "\\" in record_id:
            raise StorageError(f"Invalid record identifier: {record_id!r}")
        location = f"{record_id}.json"
        if location.casefold() in self.reserved_names:
            raise StorageError(f"Record identifier {record_id!r} collides with store file {location}")
        return location

    def resolve(self, location: str) -> Path:
        return self.data_dir / location

    async def write(self, record_id: str, record: Record) -> str:
        """
        Write ``record`` to the file for ``record_id``, replacing any prior content.

        Returns the location written. Raises StorageError on failure.
        """
        location = self.location_for(record_id)
        path = self.resolve(location)
        try:
            async with aiofiles.open(path, "w", encoding="utf-8") as f:
                await f.write(dump_record(record))
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write record {record_id}: {e}", path=str(path)) from e
        return location

    async def read(self, record_id: str) -> Optional[Record]:
        try:
            location = self.location_for(record_id)
        except StorageError as e:
            logger.error(f"Cannot read record: {e}")
            return None
        return await self.read_location(location)

    async def read_location(self, location: str) -> Optional[Record]:
        """
        Load the record stored at ``location``.

        Missing files, unparseable JSON and non-object JSON all yield None so
        a bulk scan can carry on with the next record.
        """
        text = await self.read_raw(location)
        if text is None:
            return None
        try:
            record = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in record file {location}: {e}")
            return None
        if not isinstance(record, dict):
            logger.error(f"Record file {location} does not contain a JSON object")
            return None
        return record

    async def read_raw(self, location: str) -> Optional[str]:
        path = self.resolve(location)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError:
            logger.error(f"Record file not found: {location}")
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading record file {location}: {e}")
            return None

    async def exists(self, location: str) -> bool:
        return await aiofiles.os.path.isfile(self.resolve(location))

    async def size(self, location: str) -> Optional[int]:
        """Byte size of the file at ``location``, or None if it is missing."""
        try:
            stat = await aiofiles.os.stat(self.resolve(location))
        except FileNotFoundError:
            return None
        return stat.st_size

    async def remove(self, location: str) -> bool:
        """
        Best-effort delete. Failures are logged and reported as False, never raised.
        """
        try:
            await aiofiles.os.remove(self.resolve(location))
        except OSError as e:
            logger.error(f"Error deleting record file {location}: {e}")
            return False
        return True
