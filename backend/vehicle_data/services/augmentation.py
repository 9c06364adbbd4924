"""
VIN augmentation workflow.

Enriches stored vehicles with make/model/year from the NHTSA decoder.

- augment_vehicle: user-triggered, single VIN. Only a successful decode
  changes the record; a rejected VIN stays put so it can be retried.
- augment_all: reconciliation pass over every vehicle. Rejected VINs are
  quarantined into error_vehicles; service errors are logged and counted
  and the pass moves on. Everything decided in the pass commits together.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from vehicle_data.config import settings
from vehicle_data.db import DuplicateKeyError, VehicleStore
from vehicle_data.services.vin_decoder import DecodeStatus, VINDecodeResult, VINDecoder

logger = logging.getLogger(__name__)


class AugmentStatus(str, Enum):
    UPDATED = "updated"
    NOT_FOUND = "not_found"
    DECODE_FAILED = "decode_failed"
    SERVICE_ERROR = "service_error"


@dataclass
class AugmentResult:
    status: AugmentStatus
    vehicle: dict | None = None
    decode: VINDecodeResult | None = None

    @property
    def message(self) -> str:
        if self.status is AugmentStatus.NOT_FOUND:
            return "Vehicle not found."
        if self.decode is not None and not self.decode.ok:
            return self.decode.message
        return "Vehicle augmented."


@dataclass
class AugmentSummary:
    updated_count: int = 0
    error_count: int = 0
    cancelled: bool = False

    @property
    def message(self) -> str:
        prefix = "Augmentation cancelled" if self.cancelled else "Augmentation completed"
        return f"{prefix}. Updated: {self.updated_count}, Errors: {self.error_count}"


async def augment_vehicle(store: VehicleStore, decoder: VINDecoder, vin: str) -> AugmentResult:
    """Decode one stored VIN and write make/model/year onto it."""
    async with store.transaction():
        vehicle = await store.get_vehicle_by_vin(vin)
        if vehicle is None:
            return AugmentResult(status=AugmentStatus.NOT_FOUND)

        decoded = await decoder.decode(vehicle["vin"])
        if decoded.status is DecodeStatus.SERVICE_ERROR:
            return AugmentResult(status=AugmentStatus.SERVICE_ERROR, vehicle=vehicle, decode=decoded)
        if decoded.status is DecodeStatus.FAILED:
            logger.warning(f"VIN {vin} rejected by NHTSA ({decoded.error_code}); record left unchanged")
            return AugmentResult(status=AugmentStatus.DECODE_FAILED, vehicle=vehicle, decode=decoded)

        await store.update_vehicle_details(vehicle["id"], decoded.make, decoded.model, decoded.year)
        vehicle.update(make=decoded.make, model=decoded.model, year=decoded.year)

    return AugmentResult(status=AugmentStatus.UPDATED, vehicle=vehicle, decode=decoded)


async def augment_all(
    store: VehicleStore,
    decoder: VINDecoder,
    cancel_event: asyncio.Event | None = None,
    concurrency: int | None = None,
) -> AugmentSummary:
    """
    Decode every stored vehicle and reconcile storage with the results.

    Decodes run `concurrency` at a time; the storage mutations for a round
    are applied one by one once the round's decodes finish. Setting
    cancel_event stops the pass before the next round, and what was already
    applied is committed.
    """
    concurrency = max(1, concurrency or settings.augment_concurrency)
    summary = AugmentSummary()

    async with store.transaction():
        vehicles = await store.get_all_vehicles()
        logger.info(f"Augmenting {len(vehicles)} vehicles ({concurrency} concurrent decodes)")

        for start in range(0, len(vehicles), concurrency):
            if cancel_event is not None and cancel_event.is_set():
                summary.cancelled = True
                logger.info(f"Augmentation cancelled after {start} of {len(vehicles)} vehicles")
                break

            batch = vehicles[start : start + concurrency]
            results = await asyncio.gather(*(decoder.decode(v["vin"]) for v in batch), return_exceptions=True)

            for vehicle, decoded in zip(batch, results):
                if isinstance(decoded, BaseException):
                    if not isinstance(decoded, Exception):
                        raise decoded
                    decoded = VINDecodeResult(vin=vehicle["vin"], status=DecodeStatus.SERVICE_ERROR, error=str(decoded))
                await _apply_decode(store, vehicle, decoded, summary)

    logger.info(summary.message)
    return summary


async def _apply_decode(store: VehicleStore, vehicle: dict, decoded: VINDecodeResult, summary: AugmentSummary):
    if decoded.status is DecodeStatus.SERVICE_ERROR:
        logger.error(f"Error augmenting vehicle with VIN {vehicle['vin']}: {decoded.error}")
        summary.error_count += 1
        return

    if decoded.status is DecodeStatus.FAILED:
        await store.delete_vehicle(vehicle["id"])
        try:
            await store.insert_error_vehicle(
                vin=vehicle["vin"],
                dealer_id=vehicle["dealer_id"],
                modified_date=vehicle["modified_date"],
                error_code=decoded.error_code,
                error_text=decoded.error_text,
            )
        except DuplicateKeyError:
            # already quarantined under the same key; the stale vehicle row is still dropped
            logger.warning(f"VIN {vehicle['vin']} already in error storage for this dealer and date")
        else:
            logger.warning(f"Moved VIN {vehicle['vin']} to error storage: {decoded.error_code} {decoded.error_text}")
        summary.error_count += 1
        return

    await store.update_vehicle_details(vehicle["id"], decoded.make, decoded.model, decoded.year)
    summary.updated_count += 1
