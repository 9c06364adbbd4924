"""
Pydantic schemas for vehicle API requests and responses.

Fields are snake_case in Python and camelCase on the wire.
"""

import math
from datetime import date
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from vehicle_data.utils.parsing import DEALER_ID_MAX, DEALER_ID_MIN, parse_modified_date

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Vehicle(CamelModel):
    """Stored vehicle; make/model/year stay null until augmented."""

    id: int
    vin: str
    dealer_id: int
    modified_date: date
    make: str | None = None
    model: str | None = None
    year: int | None = None


class ErrorVehicle(CamelModel):
    """Vehicle whose VIN NHTSA refused to decode."""

    id: int
    vin: str
    dealer_id: int
    modified_date: date
    error_code: str | None = None
    error_text: str | None = None


class Page(CamelModel, Generic[T]):
    """One page of a filtered collection."""

    items: list[T] = Field(default_factory=list)
    total_items: int
    page_number: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, items: list, total_items: int, page_number: int, page_size: int) -> "Page":
        return cls(
            items=items,
            total_items=total_items,
            page_number=page_number,
            page_size=page_size,
            total_pages=math.ceil(total_items / page_size),
        )


class ImportResponse(CamelModel):
    total_processed: int
    successfully_imported: int
    errors: list[str] = Field(default_factory=list)


class AugmentAllResponse(CamelModel):
    updated_count: int
    error_count: int
    cancelled: bool = False
    message: str


class CorrectErrorRequest(CamelModel):
    original_vin: str = Field(..., min_length=1)
    corrected_vin: str = Field(..., min_length=1)
    dealer_id: int = Field(..., ge=DEALER_ID_MIN, le=DEALER_ID_MAX)
    modified_date: date

    @field_validator("original_vin", "corrected_vin")
    @classmethod
    def _strip_vin(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("VIN must not be blank")
        return v

    @field_validator("modified_date", mode="before")
    @classmethod
    def _parse_date(cls, v):
        if isinstance(v, str):
            return parse_modified_date(v)
        return v


class CorrectErrorFailure(CamelModel):
    message: str
    error_code: str | None = None
    error_text: str | None = None
