"""
CSV importer for dealer VIN feeds.

Reads (dealerId, vin, modifiedDate) rows, skips invalid and duplicate rows
with a collected message, inserts the rest as un-augmented vehicles in one
transaction, then moves the file into the archive directory.
"""

import csv
import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from vehicle_data.db import DuplicateKeyError, VehicleStore
from vehicle_data.utils.parsing import parse_dealer_id, parse_modified_date

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("dealerId", "vin", "modifiedDate")


class CSVFormatError(Exception):
    """The file cannot be read as a vehicle CSV at all."""


@dataclass
class ImportResult:
    total_processed: int = 0
    successfully_imported: int = 0
    errors: list[str] = field(default_factory=list)
    archived_to: Path | None = None


def archive_file(path: Path, archive_dir: Path) -> Path:
    """Move path into archive_dir as <stem>-<YYYYmmddHHMMSS><suffix>."""
    archive_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")
    target = archive_dir / f"{path.stem}-{stamp}{path.suffix}"
    shutil.move(str(path), str(target))
    return target


async def import_csv(store: VehicleStore, path: Path, archive_dir: Path | None = None) -> ImportResult:
    """
    Import vehicles from a CSV file.

    Raises FileNotFoundError if the file is missing and CSVFormatError if the
    header lacks a required column. Row problems never abort the batch; they
    are reported in ImportResult.errors. With archive_dir set, the file is
    archived after the batch committed; an archive failure only adds a message.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    logger.info(f"Importing vehicles from {path}")
    result = ImportResult()

    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        header = [h.strip() for h in reader.fieldnames or []]
        missing = [c for c in REQUIRED_COLUMNS if c not in header]
        if missing:
            raise CSVFormatError(f"CSV is missing required column(s): {', '.join(missing)}")
        reader.fieldnames = header
        rows = list(reader)

    result.total_processed = len(rows)

    async with store.transaction():
        for row in rows:
            error = await _import_row(store, row)
            if error:
                logger.warning(error)
                result.errors.append(error)
            else:
                result.successfully_imported += 1

    logger.info(
        f"Import finished: {result.successfully_imported}/{result.total_processed} imported, "
        f"{len(result.errors)} errors"
    )

    if archive_dir is not None:
        try:
            result.archived_to = archive_file(path, Path(archive_dir))
            logger.info(f"Archived {path.name} to {result.archived_to}")
        except OSError as e:
            logger.warning(f"Failed to archive {path}: {e}")
            result.errors.append(f"Failed to archive CSV: {e}")

    return result


async def _import_row(store: VehicleStore, row: dict) -> str | None:
    """Insert one CSV row. Returns an error message, or None on success."""
    vin = (row.get("vin") or "").strip()
    modified = (row.get("modifiedDate") or "").strip()
    dealer = (row.get("dealerId") or "").strip()

    if not vin or not modified:
        return f"Missing VIN or ModifiedDate for dealerId {dealer}."

    if await store.vin_exists(vin):
        return f"Duplicate VIN {vin} for dealerId {dealer}."

    try:
        await store.insert_vehicle(
            vin=vin,
            dealer_id=parse_dealer_id(dealer),
            modified_date=parse_modified_date(modified),
        )
    except (ValueError, DuplicateKeyError) as e:
        return f"Failed to import VIN {vin}: {e}"
    except Exception as e:
        logger.error(f"Unexpected error importing VIN {vin}: {e}")
        return f"Failed to import VIN {vin}: {e}"
    return None
