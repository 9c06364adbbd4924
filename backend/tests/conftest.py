"""
Shared fixtures for Vehicle Data backend tests.
"""
import os
import sys

import pytest
import pytest_asyncio

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Keep Settings away from a developer's .env data paths
os.environ.setdefault("IMPORT_ON_STARTUP", "false")

from vehicle_data.db import VehicleStore  # noqa: E402
from vehicle_data.services.vin_decoder import DecodeStatus, VINDecodeResult  # noqa: E402

NHTSA_URL = "https://vpic.nhtsa.dot.gov/api/vehicles/DecodeVin/{vin}?format=json"

GOOD_VIN = "1FAFP404X1F123456"
BAD_VIN = "INVALIDVIN0000000"


def nhtsa_results(
    make: str | None = "Ford",
    model: str | None = "F-150",
    year: str | None = "2021",
    error_code: str | None = "0",
    error_text: str | None = "0 - VIN decoded clean. Check Digit (9th position) is correct",
) -> dict:
    """Build a DecodeVin response body."""
    return {
        "Count": 5,
        "Message": "Results returned successfully",
        "SearchCriteria": "VIN:...",
        "Results": [
            {"Value": error_code, "ValueId": "", "Variable": "Error Code", "VariableId": 143},
            {"Value": error_text, "ValueId": "", "Variable": "Error Text", "VariableId": 191},
            {"Value": make, "ValueId": "460", "Variable": "Make", "VariableId": 26},
            {"Value": model, "ValueId": "1801", "Variable": "Model", "VariableId": 28},
            {"Value": year, "ValueId": "", "Variable": "Model Year", "VariableId": 29},
            {"Value": None, "ValueId": None, "Variable": "Trim", "VariableId": 38},
        ],
    }


def decoded_ok(vin: str, make="Ford", model="F-150", year=2021) -> VINDecodeResult:
    return VINDecodeResult(vin=vin, status=DecodeStatus.OK, make=make, model=model, year=year, error_code="0")


def decoded_failed(vin: str, code="7", text="VIN has errors") -> VINDecodeResult:
    return VINDecodeResult(vin=vin, status=DecodeStatus.FAILED, error_code=code, error_text=text)


def decoded_service_error(vin: str, error="Connection refused") -> VINDecodeResult:
    return VINDecodeResult(vin=vin, status=DecodeStatus.SERVICE_ERROR, error=error)


class FakeDecoder:
    """Stands in for VINDecoder: canned results per VIN, OK decode otherwise."""

    def __init__(self, results: dict[str, VINDecodeResult] | None = None):
        self.results = results or {}
        self.calls: list[str] = []

    async def decode(self, vin: str) -> VINDecodeResult:
        self.calls.append(vin)
        return self.results.get(vin) or decoded_ok(vin)


@pytest_asyncio.fixture
async def store(tmp_path):
    """Fresh SQLite store for each test."""
    s = await VehicleStore.open(tmp_path / "test.db")
    yield s
    await s.close()


@pytest.fixture
def fake_decoder():
    return FakeDecoder()
