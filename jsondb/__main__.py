"""
Diagnostics for a data folder:

    python -m jsondb [--data-dir DIR] debug   # record count and storage sizes
    python -m jsondb [--data-dir DIR] check   # integrity report, exit code 1 on issues
    python -m jsondb [--data-dir DIR] dump    # all records as a tab-separated table
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from jsondb.core.dependencies import get_data_dir, get_settings
from jsondb.storage.json_db_manager import JsonDatabaseManager

logger = logging.getLogger(__name__)


async def _run(command: str, data_dir: Path) -> int:
    async with JsonDatabaseManager(data_dir, get_settings()) as db:
        if command == "debug":
            info = await db.debug_snapshot()
            print(info.model_dump_json(by_alias=True, indent=2))
            return 0
        if command == "check":
            report = await db.check_integrity()
            for issue in report.issues:
                print(issue)
            print("OK" if report.valid else f"{len(report.issues)} issue(s) found")
            return 0 if report.valid else 1
        print(db.format_as_table(await db.read_all()), end="")
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="jsondb", description="Inspect a jsondb data folder.")
    parser.add_argument("--data-dir", type=Path, default=None, help="Data folder (default: $JSONDB_DATA_DIR or ./data)")
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("command", choices=["debug", "check", "dump"])
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    data_dir = args.data_dir or get_data_dir()
    return asyncio.run(_run(args.command, data_dir))


if __name__ == "__main__":
    sys.exit(main())
