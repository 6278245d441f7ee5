"""
Pytest configuration and shared fixtures
"""
import json
from pathlib import Path

import pytest
import pytest_asyncio

from jsondb.domain.models import DataSchema, SchemaField, StoreSettings
from jsondb.storage.json_db_manager import JsonDatabaseManager


@pytest.fixture
def data_dir(tmp_path) -> Path:
    return tmp_path / "data"


@pytest_asyncio.fixture
async def store(data_dir):
    """Initialized schema-less store; background sweep stopped on teardown."""
    db = JsonDatabaseManager(data_dir, StoreSettings())
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def fresh_cache_store(data_dir):
    """Store that clears the search cache after every mutation."""
    db = JsonDatabaseManager(data_dir, StoreSettings(invalidate_cache_on_write=True))
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def title_schema() -> DataSchema:
    return DataSchema(
        name="Notes",
        fields=[
            SchemaField(name="title", type="string", required=True),
            SchemaField(name="count", type="number"),
        ],
        index_fields=["title"],
    )


def read_index_file(data_dir: Path) -> list:
    return json.loads((data_dir / "data-index.json").read_text(encoding="utf-8"))
