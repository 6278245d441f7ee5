"""
Consistency audit of the index against the record files.

Problems are reported, never repaired.
"""
from __future__ import annotations

import json
import logging

from jsondb.domain.models import IntegrityReport
from jsondb.storage.index_store import IndexStore
from jsondb.storage.record_store import RecordStore

logger = logging.getLogger(__name__)


class IntegrityChecker:
    def __init__(self, index: IndexStore, records: RecordStore):
        self.index = index
        self.records = records

    async def check(self) -> IntegrityReport:
        """
        Verify every index entry points at an existing file holding a JSON object.

        A malformed index raises (MalformedIndexError); there is nothing to
        cross-check without one.
        """
        issues = []
        for entry in await self.index.load():
            if not await self.records.exists(entry.file_path):
                issues.append(f"Missing file: {entry.file_path} for ID: {entry.id}")
                continue

            content = await self.records.read_raw(entry.file_path)
            try:
                parsed = json.loads(content) if content is not None else None
            except json.JSONDecodeError:
                parsed = None
            if not isinstance(parsed, dict):
                issues.append(f"Invalid JSON in file: {entry.file_path} for ID: {entry.id}")

        if issues:
            logger.warning(f"Integrity check found {len(issues)} issue(s)")
        return IntegrityReport(valid=not issues, issues=issues)
