#!/usr/bin/env python3
"""Import the HR employee spreadsheet (CSV) into the user directory."""
from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from latms.db.mongo import get_mongo_db, close_mongo_client
from latms.db.mongo_indexes import ensure_indexes
from latms.services.dual_write import DualWriteService, get_legacy_mirror
from latms.services.employee_import import import_employees


async def run(csv_path: Path) -> None:
    db = get_mongo_db()
    await ensure_indexes(db)
    writer = DualWriteService(db, get_legacy_mirror())
    result = await import_employees(writer, csv_path.read_text(encoding="utf-8"))
    for err in result.errors:
        print(f"  skipped: {err}")
    print(f"Processed: {result.processed} employees")
    print(f"Skipped: {result.skipped} records")
    close_mongo_client()


def main() -> None:
    ap = argparse.ArgumentParser(description="Import employees from a CSV export")
    ap.add_argument("csv", type=Path, help="Path to the CSV file (Staff Code, Name, Email, Department, Location, Role, Supervisor, Leave Bal)")
    args = ap.parse_args()
    if not args.csv.exists():
        ap.error(f"{args.csv} does not exist")
    asyncio.run(run(args.csv))


if __name__ == "__main__":
    main()
