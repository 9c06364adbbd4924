"""
SQLite storage layer for vehicle data.

Stores:
- vehicles: imported VIN records, enriched in place with make/model/year
- error_vehicles: records whose VIN failed to decode, with the decoder's error details

Both tables carry a UNIQUE (vin, dealer_id, modified_date) constraint, and a
key is never present in both tables at once.

Uses aiosqlite for async SQLite access. A VehicleStore wraps one connection
and is handed to the workflows and routes explicitly. Writes only become
visible to other connections when the enclosing transaction() commits.
"""

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)


class DuplicateKeyError(Exception):
    """Insert would repeat a (vin, dealer_id, modified_date) key."""


_SCHEMA = """
    CREATE TABLE IF NOT EXISTS vehicles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        vin TEXT NOT NULL,
        dealer_id INTEGER NOT NULL,
        modified_date TEXT NOT NULL,
        make TEXT,
        model TEXT,
        year INTEGER,
        UNIQUE (vin, dealer_id, modified_date)
    );

    CREATE INDEX IF NOT EXISTS idx_vehicles_vin
        ON vehicles(vin);
    CREATE INDEX IF NOT EXISTS idx_vehicles_dealer
        ON vehicles(dealer_id);
    CREATE INDEX IF NOT EXISTS idx_vehicles_modified
        ON vehicles(modified_date);

    CREATE TABLE IF NOT EXISTS error_vehicles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        vin TEXT NOT NULL,
        dealer_id INTEGER NOT NULL,
        modified_date TEXT NOT NULL,
        error_code TEXT,
        error_text TEXT,
        UNIQUE (vin, dealer_id, modified_date)
    );

    CREATE INDEX IF NOT EXISTS idx_error_vehicles_vin
        ON error_vehicles(vin);
    CREATE INDEX IF NOT EXISTS idx_error_vehicles_modified
        ON error_vehicles(modified_date);
"""


def _row_to_dict(row: aiosqlite.Row) -> dict:
    d = dict(row)
    d["modified_date"] = date.fromisoformat(d["modified_date"])
    return d


class VehicleStore:
    """Vehicle and error-vehicle collections over a single aiosqlite connection."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: Path | str) -> "VehicleStore":
        """Connect to (and create if needed) the database at path."""
        if str(path) != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(path))
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA journal_mode=WAL")
        await db.executescript(_SCHEMA)
        await db.commit()
        logger.info(f"SQLite database initialized at {path}")
        return cls(db)

    async def close(self):
        await self._db.close()
        logger.info("SQLite database connection closed")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["VehicleStore"]:
        """
        Run one unit of work: commit on success, roll back on any exception.

        Units of work are serialized, so two workflows never mutate the
        same key concurrently.
        """
        async with self._lock:
            try:
                yield self
            except BaseException:
                await self._db.rollback()
                raise
            else:
                await self._db.commit()

    # ─── Vehicles ────────────────────────────────────────────────────────

    async def get_vehicle_by_vin(self, vin: str) -> dict | None:
        cursor = await self._db.execute("SELECT * FROM vehicles WHERE vin = ? ORDER BY id LIMIT 1", (vin,))
        row = await cursor.fetchone()
        return _row_to_dict(row) if row else None

    async def get_all_vehicles(self) -> list[dict]:
        cursor = await self._db.execute("SELECT * FROM vehicles ORDER BY id")
        return [_row_to_dict(r) for r in await cursor.fetchall()]

    async def insert_vehicle(
        self,
        vin: str,
        dealer_id: int,
        modified_date: date,
        make: str | None = None,
        model: str | None = None,
        year: int | None = None,
    ) -> int:
        """Insert a vehicle. Returns its id; raises DuplicateKeyError if the key is taken in either table."""
        key = (vin, dealer_id, modified_date.isoformat())
        if await self._key_exists("error_vehicles", key):
            raise DuplicateKeyError(f"VIN {vin} for dealerId {dealer_id} on {modified_date} is in error storage")
        try:
            cursor = await self._db.execute(
                """INSERT INTO vehicles (vin, dealer_id, modified_date, make, model, year)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (*key, make, model, year),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Vehicle VIN {vin} for dealerId {dealer_id} on {modified_date} exists") from e
        return cursor.lastrowid

    async def update_vehicle_details(self, vehicle_id: int, make: str | None, model: str | None, year: int | None):
        """Write decoded make/model/year onto an existing vehicle."""
        await self._db.execute(
            "UPDATE vehicles SET make = ?, model = ?, year = ? WHERE id = ?",
            (make, model, year, vehicle_id),
        )

    async def delete_vehicle(self, vehicle_id: int) -> bool:
        cursor = await self._db.execute("DELETE FROM vehicles WHERE id = ?", (vehicle_id,))
        return cursor.rowcount > 0

    async def list_vehicles(
        self,
        dealer_id: int | None = None,
        modified_since: date | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[dict], int]:
        """Filter vehicles by dealer and minimum modified date. Returns (page, total matching)."""
        conditions = []
        params: list = []

        if dealer_id is not None:
            conditions.append("dealer_id = ?")
            params.append(dealer_id)
        if modified_since is not None:
            conditions.append("modified_date >= ?")
            params.append(modified_since.isoformat())

        where = " AND ".join(conditions) if conditions else "1=1"
        cursor = await self._db.execute(f"SELECT COUNT(*) FROM vehicles WHERE {where}", params)
        total = (await cursor.fetchone())[0]

        cursor = await self._db.execute(
            f"SELECT * FROM vehicles WHERE {where} ORDER BY id LIMIT ? OFFSET ?",
            (*params, limit, offset),
        )
        return [_row_to_dict(r) for r in await cursor.fetchall()], total

    # ─── Error Vehicles ──────────────────────────────────────────────────

    async def get_error_vehicle_by_vin(self, vin: str) -> dict | None:
        cursor = await self._db.execute("SELECT * FROM error_vehicles WHERE vin = ? ORDER BY id LIMIT 1", (vin,))
        row = await cursor.fetchone()
        return _row_to_dict(row) if row else None

    async def insert_error_vehicle(
        self,
        vin: str,
        dealer_id: int,
        modified_date: date,
        error_code: str | None = None,
        error_text: str | None = None,
    ) -> int:
        """Insert an error vehicle. Returns its id; raises DuplicateKeyError if the key is taken in either table."""
        key = (vin, dealer_id, modified_date.isoformat())
        if await self._key_exists("vehicles", key):
            raise DuplicateKeyError(f"VIN {vin} for dealerId {dealer_id} on {modified_date} is in vehicle storage")
        try:
            cursor = await self._db.execute(
                """INSERT INTO error_vehicles (vin, dealer_id, modified_date, error_code, error_text)
                   VALUES (?, ?, ?, ?, ?)""",
                (*key, error_code, error_text),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Error vehicle VIN {vin} for dealerId {dealer_id} on {modified_date} exists") from e
        return cursor.lastrowid

    async def delete_error_vehicle(self, error_id: int) -> bool:
        cursor = await self._db.execute("DELETE FROM error_vehicles WHERE id = ?", (error_id,))
        return cursor.rowcount > 0

    async def list_error_vehicles(self, limit: int = 10, offset: int = 0) -> tuple[list[dict], int]:
        """Page through error vehicles, most recently modified first."""
        cursor = await self._db.execute("SELECT COUNT(*) FROM error_vehicles")
        total = (await cursor.fetchone())[0]

        cursor = await self._db.execute(
            "SELECT * FROM error_vehicles ORDER BY modified_date DESC, id LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [_row_to_dict(r) for r in await cursor.fetchall()], total

    # ─── Helpers ─────────────────────────────────────────────────────────

    async def vin_exists(self, vin: str) -> bool:
        """True if the VIN is present in either table."""
        cursor = await self._db.execute(
            """SELECT 1 FROM vehicles WHERE vin = ?
               UNION ALL
               SELECT 1 FROM error_vehicles WHERE vin = ?
               LIMIT 1""",
            (vin, vin),
        )
        return await cursor.fetchone() is not None

    async def _key_exists(self, table: str, key: tuple) -> bool:
        cursor = await self._db.execute(
            f"SELECT 1 FROM {table} WHERE vin = ? AND dealer_id = ? AND modified_date = ? LIMIT 1",
            key,
        )
        return await cursor.fetchone() is not None
