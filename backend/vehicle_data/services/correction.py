"""
Error-vehicle correction workflow.

Retries the decode of a quarantined vehicle under a replacement VIN. Each
attempt consumes the original error record and produces exactly one new
record: a decoded vehicle on success, or a fresh error record under the
replacement VIN on failure. Both sides change in one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum

from vehicle_data.db import DuplicateKeyError, VehicleStore
from vehicle_data.services.vin_decoder import DecodeStatus, VINDecodeResult, VINDecoder

logger = logging.getLogger(__name__)


class CorrectionStatus(str, Enum):
    CORRECTED = "corrected"
    DECODE_FAILED = "decode_failed"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    SERVICE_ERROR = "service_error"


@dataclass
class CorrectionResult:
    status: CorrectionStatus
    decode: VINDecodeResult | None = None
    record_id: int | None = None  # id of the vehicle or error vehicle that was created
    detail: str | None = None

    @property
    def message(self) -> str:
        if self.status is CorrectionStatus.CORRECTED:
            return "VIN correction successful"
        if self.status in (CorrectionStatus.DECODE_FAILED, CorrectionStatus.SERVICE_ERROR):
            return self.decode.message
        return self.detail or self.status.value


async def correct_error(
    store: VehicleStore,
    decoder: VINDecoder,
    original_vin: str,
    corrected_vin: str,
    dealer_id: int,
    modified_date: date,
) -> CorrectionResult:
    """Replace the error vehicle for original_vin using corrected_vin."""
    try:
        async with store.transaction():
            error_vehicle = await store.get_error_vehicle_by_vin(original_vin)
            if error_vehicle is None:
                return CorrectionResult(
                    status=CorrectionStatus.NOT_FOUND,
                    detail=f"Error vehicle with VIN {original_vin} not found.",
                )

            decoded = await decoder.decode(corrected_vin)
            if decoded.status is DecodeStatus.SERVICE_ERROR:
                return CorrectionResult(status=CorrectionStatus.SERVICE_ERROR, decode=decoded)

            await store.delete_error_vehicle(error_vehicle["id"])

            if decoded.status is DecodeStatus.FAILED:
                record_id = await store.insert_error_vehicle(
                    vin=decoded.vin,
                    dealer_id=dealer_id,
                    modified_date=modified_date,
                    error_code=decoded.error_code,
                    error_text=decoded.error_text,
                )
                logger.info(f"Correction {original_vin} -> {decoded.vin} still fails: {decoded.error_code}")
                result = CorrectionResult(status=CorrectionStatus.DECODE_FAILED, decode=decoded, record_id=record_id)
            else:
                record_id = await store.insert_vehicle(
                    vin=decoded.vin,
                    dealer_id=dealer_id,
                    modified_date=modified_date,
                    make=decoded.make,
                    model=decoded.model,
                    year=decoded.year,
                )
                logger.info(f"Corrected error vehicle {original_vin} -> {decoded.vin}")
                result = CorrectionResult(status=CorrectionStatus.CORRECTED, decode=decoded, record_id=record_id)
    except DuplicateKeyError as e:
        logger.warning(f"Correction {original_vin} -> {corrected_vin} rolled back: {e}")
        return CorrectionResult(status=CorrectionStatus.DUPLICATE, detail=str(e))

    return result
