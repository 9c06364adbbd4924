"""
Vehicle API routes.

Browse vehicles and error vehicles, import the dealer CSV, augment VINs
through NHTSA and correct quarantined VINs.
"""

import asyncio
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from vehicle_data.api.deps import get_decoder, get_settings, get_shutdown_event, get_store
from vehicle_data.config import Settings, settings
from vehicle_data.db import VehicleStore
from vehicle_data.schemas.vehicle import (
    AugmentAllResponse,
    CorrectErrorFailure,
    CorrectErrorRequest,
    ErrorVehicle,
    ImportResponse,
    Page,
    Vehicle,
)
from vehicle_data.services.augmentation import AugmentStatus, augment_all, augment_vehicle
from vehicle_data.services.correction import CorrectionStatus, correct_error
from vehicle_data.services.csv_importer import CSVFormatError, import_csv
from vehicle_data.services.vin_decoder import VINDecoder
from vehicle_data.utils.parsing import DEALER_ID_MAX, DEALER_ID_MIN

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/vehicle", tags=["vehicle"])


# ── Browse ──────────────────────────────────────────────────────────


@router.get("", response_model=Page[Vehicle])
async def list_vehicles(
    page_number: int = Query(1, ge=1, alias="pageNumber"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, alias="pageSize"),
    dealer_id: int | None = Query(
        None, ge=DEALER_ID_MIN, le=DEALER_ID_MAX, alias="dealerId", description="Filter by dealer"
    ),
    modified_date: date | None = Query(None, alias="modifiedDate", description="Only vehicles modified on or after"),
    store: VehicleStore = Depends(get_store),
):
    """List vehicles, optionally filtered by dealer and minimum modified date."""
    items, total = await store.list_vehicles(
        dealer_id=dealer_id,
        modified_since=modified_date,
        limit=page_size,
        offset=(page_number - 1) * page_size,
    )
    return Page[Vehicle].build(items, total, page_number, page_size)


@router.get("/errors", response_model=Page[ErrorVehicle])
async def list_error_vehicles(
    page_number: int = Query(1, ge=1, alias="pageNumber"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, alias="pageSize"),
    store: VehicleStore = Depends(get_store),
):
    """List error vehicles, most recently modified first."""
    items, total = await store.list_error_vehicles(limit=page_size, offset=(page_number - 1) * page_size)
    return Page[ErrorVehicle].build(items, total, page_number, page_size)


@router.get("/errors/{vin}", response_model=ErrorVehicle)
async def get_error_vehicle(vin: str, store: VehicleStore = Depends(get_store)):
    error_vehicle = await store.get_error_vehicle_by_vin(vin)
    if error_vehicle is None:
        raise HTTPException(status_code=404, detail=f"Error vehicle with VIN {vin} not found.")
    return error_vehicle


# ── Import & Augmentation ───────────────────────────────────────────


@router.post("/import", response_model=ImportResponse)
async def import_vehicles(
    store: VehicleStore = Depends(get_store),
    config: Settings = Depends(get_settings),
):
    """Import the dealer CSV from its known location and archive it."""
    try:
        result = await import_csv(store, config.import_csv_path, archive_dir=config.archive_dir)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="CSV file not found.")
    except CSVFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ImportResponse(
        total_processed=result.total_processed,
        successfully_imported=result.successfully_imported,
        errors=result.errors,
    )


@router.post("/augment", response_model=AugmentAllResponse)
async def augment_all_vehicles(
    store: VehicleStore = Depends(get_store),
    decoder: VINDecoder = Depends(get_decoder),
    shutdown_event: asyncio.Event | None = Depends(get_shutdown_event),
):
    """Decode every vehicle; VINs NHTSA rejects are moved to the error table."""
    summary = await augment_all(store, decoder, cancel_event=shutdown_event)
    return AugmentAllResponse(
        updated_count=summary.updated_count,
        error_count=summary.error_count,
        cancelled=summary.cancelled,
        message=summary.message,
    )


@router.post("/correct-error", responses={400: {"model": CorrectErrorFailure}})
async def correct_error_vehicle(
    req: CorrectErrorRequest,
    store: VehicleStore = Depends(get_store),
    decoder: VINDecoder = Depends(get_decoder),
):
    """Retry an error vehicle under a corrected VIN."""
    result = await correct_error(
        store,
        decoder,
        original_vin=req.original_vin,
        corrected_vin=req.corrected_vin,
        dealer_id=req.dealer_id,
        modified_date=req.modified_date,
    )

    if result.status is CorrectionStatus.CORRECTED:
        return {"message": result.message}
    if result.status is CorrectionStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail=result.message)
    if result.status is CorrectionStatus.DUPLICATE:
        raise HTTPException(status_code=409, detail=result.message)
    if result.status is CorrectionStatus.SERVICE_ERROR:
        raise HTTPException(status_code=502, detail=result.message)

    failure = CorrectErrorFailure(
        message=result.message,
        error_code=result.decode.error_code,
        error_text=result.decode.error_text,
    )
    return JSONResponse(status_code=400, content=failure.model_dump(by_alias=True))


# ── Single VIN ──────────────────────────────────────────────────────


@router.get("/{vin}", response_model=Vehicle)
async def get_vehicle(vin: str, store: VehicleStore = Depends(get_store)):
    vehicle = await store.get_vehicle_by_vin(vin)
    if vehicle is None:
        raise HTTPException(status_code=404, detail=f"Vehicle with VIN {vin} not found.")
    return vehicle


@router.post("/{vin}/augment", response_model=Vehicle)
async def augment_single_vehicle(
    vin: str,
    store: VehicleStore = Depends(get_store),
    decoder: VINDecoder = Depends(get_decoder),
):
    """Decode one vehicle's VIN and store its make/model/year."""
    result = await augment_vehicle(store, decoder, vin)
    if result.status is AugmentStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail=f"Vehicle with VIN {vin} not found.")
    if result.status is not AugmentStatus.UPDATED:
        raise HTTPException(status_code=502, detail=result.message)
    return result.vehicle
