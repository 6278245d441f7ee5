"""
Tests for the query cache sweep and the integrity checker
"""
import asyncio

import pytest

from jsondb.services.caching import QueryCache
from jsondb.services.integrity import IntegrityChecker
from jsondb.storage.index_store import IndexStore
from jsondb.storage.record_store import RecordStore

pytestmark = pytest.mark.asyncio


class TestQueryCache:
    async def test_key_is_field_and_lowercased_query(self):
        cache = QueryCache()
        cache.put("Apple", "title", [{"id": "a"}])
        assert cache.get("APPLE", "title") == [{"id": "a"}]
        assert cache.get("apple") is None
        assert QueryCache.make_key("X") == ("*", "x")

    async def test_sweep_clears_entries(self):
        cache = QueryCache(sweep_interval_seconds=0.01)
        cache.start()
        cache.put("q", None, [])
        await asyncio.sleep(0.1)
        assert len(cache) == 0
        assert cache.running
        await cache.stop()
        assert not cache.running

    async def test_start_is_idempotent_and_stop_without_start(self):
        cache = QueryCache()
        await cache.stop()
        cache.start()
        task = cache._sweep_task
        cache.start()
        assert cache._sweep_task is task
        await cache.stop()
        assert task.cancelled()


class TestIntegrityChecker:
    @pytest.fixture
    def parts(self, tmp_path):
        return IndexStore(tmp_path / "index.json"), RecordStore(tmp_path)

    async def test_empty_index_is_valid(self, parts):
        report = await IntegrityChecker(*parts).check()
        assert report.valid
        assert report.issues == []

    async def test_reports_missing_and_invalid(self, parts, tmp_path):
        index, records = parts
        await records.write("ok", {"id": "ok"})
        (tmp_path / "broken.json").write_text("{oops", encoding="utf-8")
        (tmp_path / "array.json").write_text("[]", encoding="utf-8")
        for record_id in ("ok", "gone", "broken", "array"):
            await index.upsert(record_id, f"{record_id}.json")

        report = await IntegrityChecker(index, records).check()

        assert not report.valid
        assert report.issues == [
            "Missing file: gone.json for ID: gone",
            "Invalid JSON in file: broken.json for ID: broken",
            "Invalid JSON in file: array.json for ID: array",
        ]
