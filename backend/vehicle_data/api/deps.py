"""
FastAPI dependency providers.

The store and decoder are created in the application lifespan and kept on
app.state; tests swap them through app.dependency_overrides.
"""

import asyncio

from fastapi import Request

from vehicle_data.config import Settings, settings
from vehicle_data.db import VehicleStore
from vehicle_data.services.vin_decoder import VINDecoder


def get_store(request: Request) -> VehicleStore:
    return request.app.state.store


def get_decoder(request: Request) -> VINDecoder:
    return request.app.state.decoder


def get_settings() -> Settings:
    return settings


def get_shutdown_event(request: Request) -> asyncio.Event | None:
    """Set when the application begins shutting down; long passes stop at the next round."""
    return getattr(request.app.state, "shutdown_event", None)
