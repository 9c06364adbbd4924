#!/usr/bin/env python3
"""
Decode every stored vehicle through NHTSA and quarantine rejected VINs.

Ctrl-C stops the pass after the current round of decodes; everything
decided so far is committed.

Usage:
    python augment_vehicles.py
    python augment_vehicles.py --concurrency 8
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).parent))

from vehicle_data.config import settings
from vehicle_data.db import VehicleStore
from vehicle_data.services.augmentation import augment_all
from vehicle_data.services.vin_decoder import VINDecoder


async def run(db_path: Path, concurrency: int) -> None:
    cancel = asyncio.Event()
    asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel.set)

    store = await VehicleStore.open(db_path)
    try:
        async with httpx.AsyncClient(timeout=settings.decode_timeout) as client:
            decoder = VINDecoder(client=client)
            summary = await augment_all(store, decoder, cancel_event=cancel, concurrency=concurrency)
    finally:
        await store.close()
    print(summary.message)


def main():
    parser = argparse.ArgumentParser(description="Augment all vehicles with NHTSA make/model/year")
    parser.add_argument("--db", default=str(settings.db_path), help="SQLite database file")
    parser.add_argument("--concurrency", type=int, default=settings.augment_concurrency, help="Decodes in flight")
    args = parser.parse_args()
    asyncio.run(run(Path(args.db), args.concurrency))


if __name__ == "__main__":
    main()
