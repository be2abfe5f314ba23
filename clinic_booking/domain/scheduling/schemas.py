"""Scheduling domain schemas - Pydantic models for availability and booking"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import (
    validate_email,
    validate_iso_date,
    validate_phone,
    validate_time_hhmm,
)
from ...utils.sanitization import strip_and_truncate


class SlotResponse(BaseModel):
    time: str
    displayTime: str
    available: bool = True


class AvailabilityResponse(BaseModel):
    """Schema for the public availability endpoint"""

    slots: list[SlotResponse]
    message: Optional[str] = None


class BookingCreate(BaseModel):
    """Schema for a public booking request"""

    serviceId: int
    date: str
    startTime: str
    name: str = Field(..., min_length=2, max_length=200)
    email: str
    phone: str = Field(..., min_length=1)
    childName: Optional[str] = None
    childAge: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        return validate_iso_date(v).isoformat()

    @field_validator("startTime")
    @classmethod
    def check_start_time(cls, v):
        return validate_time_hhmm(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("childName", "childAge")
    @classmethod
    def check_child_fields(cls, v):
        return strip_and_truncate(v, max_length=100)

    @field_validator("notes")
    @classmethod
    def check_notes(cls, v):
        return strip_and_truncate(v, max_length=2000)


class BookingSummary(BaseModel):
    id: int
    date: str
    time: str
    service: str


class BookingCreateResponse(BaseModel):
    """Schema for a successful booking"""

    success: bool = True
    booking: BookingSummary
