"""
Search result caching.

Results are keyed by (field, lowercased query). Entries never expire on their
own and are not touched by create/update/delete unless the store is configured
to do so: the whole cache is dropped by a periodic sweep instead. Between a
mutation and the next sweep, a repeated search can return stale results.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from jsondb.domain.models import Record

logger = logging.getLogger(__name__)

WILDCARD_FIELD = "*"

CacheKey = Tuple[str, str]


class QueryCache:
    """Search results cache with a background sweep task."""

    def __init__(self, sweep_interval_seconds: float = 300):
        self.sweep_interval_seconds = sweep_interval_seconds
        self._entries: Dict[CacheKey, List[Record]] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    @staticmethod
    def make_key(query: str, field: Optional[str] = None) -> CacheKey:
        return (field or WILDCARD_FIELD, query.lower())

    def get(self, query: str, field: Optional[str] = None) -> Optional[List[Record]]:
        return self._entries.get(self.make_key(query, field))

    def put(self, query: str, field: Optional[str], results: List[Record]) -> None:
        self._entries[self.make_key(query, field)] = results

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Query cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    # ========================================================================
    # Periodic sweep
    # ========================================================================

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _sweep_loop(self) -> None:
        """
        Background task that clears the cache every sweep_interval_seconds.
        """
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            self.clear()

    def start(self) -> None:
        """Start the sweep task on the running loop (no-op if already running)."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
