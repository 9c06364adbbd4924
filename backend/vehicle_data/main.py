"""
Vehicle Data FastAPI application entry point.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vehicle_data.api.routes import pages, vehicles
from vehicle_data.config import settings
from vehicle_data.db import VehicleStore
from vehicle_data.services.csv_importer import CSVFormatError, import_csv
from vehicle_data.services.vin_decoder import VINDecoder

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def seed_store(store: VehicleStore, csv_path: Path) -> None:
    """Load the dealer CSV at startup. The file is not archived, so it can still be imported later."""
    if not csv_path.exists():
        logger.info(f"CSV file not found at {csv_path}. Skipping data load.")
        return
    try:
        result = await import_csv(store, csv_path, archive_dir=None)
        logger.info(f"Startup import loaded {result.successfully_imported} vehicles")
    except CSVFormatError as e:
        logger.warning(f"Startup import skipped: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Vehicle Data API...")
    store = await VehicleStore.open(settings.db_path)
    http_client = httpx.AsyncClient(timeout=settings.decode_timeout)

    app.state.store = store
    app.state.decoder = VINDecoder(client=http_client)
    app.state.shutdown_event = asyncio.Event()

    if settings.import_on_startup:
        await seed_store(store, settings.import_csv_path)

    yield

    # Shutdown
    logger.info("Shutting down Vehicle Data API...")
    app.state.shutdown_event.set()
    await http_client.aclose()
    await store.close()


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(vehicles.router)
app.include_router(pages.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Vehicle Data API",
        "version": settings.api_version,
        "endpoints": {
            "vehicles": "/api/vehicle?pageNumber=1&pageSize=10",
            "vehicle": "/api/vehicle/{vin}",
            "errors": "/api/vehicle/errors",
            "import": "POST /api/vehicle/import",
            "augment": "POST /api/vehicle/augment",
            "augment_one": "POST /api/vehicle/{vin}/augment",
            "correct_error": "POST /api/vehicle/correct-error",
            "vehicle_table": "/pages/vehicles",
            "error_table": "/pages/errors",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
