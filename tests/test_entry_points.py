"""
Tests for the shared store wiring and the diagnostics command
"""
import json

import pytest

from jsondb import __main__ as cli
from jsondb.core import dependencies


@pytest.mark.asyncio
class TestDependencies:
    async def test_env_var_selects_data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv(dependencies.DATA_ROOT_ENV_VAR, str(tmp_path / "store"))
        await dependencies.shutdown_db_manager()
        try:
            db = await dependencies.get_db_manager()
            assert db is await dependencies.get_db_manager()
            assert db.data_dir == tmp_path / "store"
            assert (tmp_path / "store" / "data-index.json").exists()
        finally:
            await dependencies.shutdown_db_manager()
        assert not db.cache.running


class TestDataDir:
    def test_default_data_dir(self, monkeypatch):
        monkeypatch.delenv(dependencies.DATA_ROOT_ENV_VAR, raising=False)
        assert dependencies.get_data_dir().name == "data"


class TestCli:
    def _seed(self, data_dir, records):
        data_dir.mkdir(parents=True)
        index = []
        for record in records:
            (data_dir / f"{record['id']}.json").write_text(json.dumps(record), encoding="utf-8")
            index.append({"id": record["id"], "filePath": f"{record['id']}.json"})
        (data_dir / "data-index.json").write_text(json.dumps(index), encoding="utf-8")

    def test_dump(self, tmp_path, capsys):
        self._seed(tmp_path / "d", [{"id": "a", "title": "Apple"}])
        assert cli.main(["--data-dir", str(tmp_path / "d"), "dump"]) == 0
        assert capsys.readouterr().out == "id\ttitle\na\tApple\n"

    def test_check_reports_issues(self, tmp_path, capsys):
        self._seed(tmp_path / "d", [{"id": "a"}])
        (tmp_path / "d" / "a.json").unlink()
        assert cli.main(["--data-dir", str(tmp_path / "d"), "check"]) == 1
        out = capsys.readouterr().out
        assert "Missing file: a.json for ID: a" in out

    def test_debug(self, tmp_path, capsys):
        self._seed(tmp_path / "d", [{"id": "a"}, {"id": "b"}])
        assert cli.main(["--data-dir", str(tmp_path / "d"), "debug"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["totalItems"] == 2
        assert info["storageStats"]["largestItem"]["id"] in ("a", "b")
