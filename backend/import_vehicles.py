#!/usr/bin/env python3
"""
Import dealer vehicles (dealerId, vin, modifiedDate) from CSV.

Usage:
    python import_vehicles.py
    python import_vehicles.py --file data/sample-vin-data.csv
    python import_vehicles.py --file data/feed.csv --no-archive
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from vehicle_data.config import settings
from vehicle_data.db import VehicleStore
from vehicle_data.services.csv_importer import CSVFormatError, import_csv


async def run(filepath: Path, db_path: Path, archive_dir: Path | None) -> int:
    store = await VehicleStore.open(db_path)
    try:
        result = await import_csv(store, filepath, archive_dir=archive_dir)
    except (FileNotFoundError, CSVFormatError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        await store.close()

    for error in result.errors:
        print(f"  ! {error}")
    print(f"Processed {result.total_processed} rows, imported {result.successfully_imported} vehicles.")
    if result.archived_to:
        print(f"Archived to {result.archived_to}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Import vehicles from CSV")
    parser.add_argument("--file", default=str(settings.import_csv_path), help="Path to CSV (dealerId, vin, modifiedDate)")
    parser.add_argument("--db", default=str(settings.db_path), help="SQLite database file")
    parser.add_argument("--archive-dir", default=str(settings.archive_dir), help="Where processed files are moved")
    parser.add_argument("--no-archive", action="store_true", help="Leave the CSV in place after importing")
    args = parser.parse_args()
    archive_dir = None if args.no_archive else Path(args.archive_dir)
    sys.exit(asyncio.run(run(Path(args.file), Path(args.db), archive_dir)))


if __name__ == "__main__":
    main()
