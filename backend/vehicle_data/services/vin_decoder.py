"""
VIN decoder using NHTSA vPIC API (free, no auth required).

Decodes one VIN to make/model/year through the DecodeVin endpoint, whose
"Results" list holds {"Variable": ..., "Value": ...} pairs. The list is
read once into a typed VINDecodeResult, which tells callers apart:

- OK: decoded (possibly with the benign check-digit warning)
- FAILED: NHTSA rejected the VIN; error_code/error_text say why
- SERVICE_ERROR: the request or the response parsing failed
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from vehicle_data.config import settings

logger = logging.getLogger(__name__)

# NHTSA reports a bad check digit with a nonzero code, but still decodes the VIN
BENIGN_CHECK_DIGIT_TEXT = "1 - Check Digit (9th position) does not calculate properly"


class DecodeStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SERVICE_ERROR = "service_error"


@dataclass
class VINDecodeResult:
    vin: str
    status: DecodeStatus
    make: str | None = None
    model: str | None = None
    year: int | None = None
    error_code: str | None = None
    error_text: str | None = None
    error: str | None = None  # service error message

    @property
    def ok(self) -> bool:
        return self.status is DecodeStatus.OK

    @property
    def message(self) -> str:
        """Human-readable description of a failed or errored decode."""
        if self.status is DecodeStatus.FAILED:
            return f"Error from NHTSA API: Code={self.error_code}, Text={self.error_text}"
        if self.status is DecodeStatus.SERVICE_ERROR:
            return f"Error calling NHTSA API: {self.error}"
        return "OK"


def is_decode_failure(error_code: str | None, error_text: str | None) -> bool:
    """A decode fails on a nonzero error code, unless the only complaint is the check digit."""
    if not error_code or error_code == "0":
        return False
    return error_text != BENIGN_CHECK_DIGIT_TEXT


def _clean(val: Any) -> str | None:
    # NHTSA returns empty strings or "Not Applicable" for missing values
    if val is None:
        return None
    val = str(val).strip()
    if not val or val.lower() == "not applicable":
        return None
    return val


def _parse_year(val: str | None) -> int | None:
    if val is None:
        return None
    try:
        return int(val)
    except ValueError:
        return None


def parse_decode_response(vin: str, data: Any) -> VINDecodeResult:
    """
    Interpret a DecodeVin JSON document.

    Raises ValueError when the document has no usable "Results" list or a
    Results entry names its variable with anything but a string.
    """
    if not isinstance(data, dict) or not isinstance(data.get("Results"), list):
        raise ValueError("Response has no Results list")

    values: dict[str, Any] = {}
    for item in data["Results"]:
        if not isinstance(item, dict):
            continue
        variable = item.get("Variable")
        if variable is None:
            continue
        if not isinstance(variable, str):
            raise ValueError(f"Malformed Results entry: Variable is {type(variable).__name__}")
        values.setdefault(variable, item.get("Value"))

    error_code = _clean(values.get("Error Code"))
    error_text = _clean(values.get("Error Text"))

    if is_decode_failure(error_code, error_text):
        return VINDecodeResult(
            vin=vin,
            status=DecodeStatus.FAILED,
            error_code=error_code,
            error_text=error_text,
        )

    if error_code and error_code != "0":
        logger.warning(f"NHTSA decode warning for {vin}: {error_text}")

    return VINDecodeResult(
        vin=vin,
        status=DecodeStatus.OK,
        make=_clean(values.get("Make")),
        model=_clean(values.get("Model")),
        year=_parse_year(_clean(values.get("Model Year"))),
        error_code=error_code,
        error_text=error_text,
    )


class VINDecoder:
    """Client for the NHTSA DecodeVin endpoint."""

    def __init__(
        self,
        api_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_url = api_url or settings.nhtsa_api_url
        self.timeout = timeout if timeout is not None else settings.decode_timeout
        self._client = client

    async def decode(self, vin: str) -> VINDecodeResult:
        """Decode a single VIN. Never raises for network or parse problems."""
        vin = vin.strip()
        url = self.api_url.format(vin=quote(vin, safe=""))
        try:
            if self._client is not None:
                data = await self._fetch(self._client, url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    data = await self._fetch(client, url)
            return parse_decode_response(vin, data)
        except (httpx.HTTPError, ValueError, TypeError, KeyError) as e:
            logger.error(f"NHTSA API request failed for VIN {vin}: {e}")
            return VINDecodeResult(vin=vin, status=DecodeStatus.SERVICE_ERROR, error=str(e) or type(e).__name__)

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> Any:
        response = await client.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()
