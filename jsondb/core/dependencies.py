from pathlib import Path
from typing import Optional
import os

from jsondb.domain.models import StoreSettings
from jsondb.storage.db_manager import DatabaseManager
from jsondb.storage.json_db_manager import JsonDatabaseManager

DATA_ROOT_ENV_VAR = "JSONDB_DATA_DIR"
_DEFAULT_DATA_DIR = Path.cwd() / "data"

_settings: Optional[StoreSettings] = None
_db_manager: Optional[DatabaseManager] = None


def get_data_dir() -> Path:
    """
    Determine the data directory path.

    Priority:
    1. Environment variable JSONDB_DATA_DIR
    2. '<current directory>/data'
    """
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return _DEFAULT_DATA_DIR


def get_settings() -> StoreSettings:
    global _settings
    if _settings is None:
        _settings = StoreSettings(data_folder=str(get_data_dir()))
    return _settings


async def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        settings = get_settings()
        manager = JsonDatabaseManager(Path(settings.data_folder), settings)
        await manager.initialize()
        _db_manager = manager
    return _db_manager


async def shutdown_db_manager() -> None:
    """Stop the shared store's background tasks and forget it."""
    global _db_manager, _settings
    if _db_manager is not None:
        await _db_manager.close()
    _db_manager = None
    _settings = None
