"""
Pydantic schemas for Vehicle.
"""
from datetime import date
from pydantic import Field, field_validator

from walkin_desk.schemas.base import WireModel


class VehicleBase(WireModel):
    """Base vehicle schema with common fields."""
    make: str
    model: str
    year: int
    license_plate: str


class VehicleCreate(VehicleBase):
    """Schema for adding a vehicle to a customer."""
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    license_plate: str = Field(min_length=1)

    @field_validator("make", "model", "license_plate", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("year")
    @classmethod
    def year_in_range(cls, value: int) -> int:
        if value < 1900:
            raise ValueError("Year must be at least 1900")
        if value > date.today().year + 1:
            raise ValueError("Year cannot be in the future")
        return value


class Vehicle(VehicleBase):
    """Schema for vehicle responses."""
    vehicle_id: int
    user_id: int
    model: str = ""
    year: int = 0
    license_plate: str = ""
