"""Facility and booking schemas."""

from datetime import date, datetime, time
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.facility import WEEKDAYS, BookingMode


class FacilityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    merchant_id: UUID | None = None
    booking_mode: BookingMode = BookingMode.START_TIME
    available_days: list[str] = Field(default_factory=lambda: list(WEEKDAYS))
    open_time: time = time(9, 0)
    close_time: time = time(17, 0)
    granularity_minutes: int = 30
    slot_duration_minutes: int = 60
    max_advance_days: int = Field(default=30, ge=0)
    base_fee_cents: int = Field(default=0, ge=0)

    @field_validator("available_days")
    @classmethod
    def normalize_days(cls, value: list[str]) -> list[str]:
        return [day.strip().lower() for day in value]


class FacilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID | None = None
    name: str
    description: str | None = None
    booking_mode: str
    available_days: list[str]
    open_time: time
    close_time: time
    granularity_minutes: int
    slot_duration_minutes: int
    max_advance_days: int
    base_fee_cents: int
    created_at: datetime


class SlotResponse(BaseModel):
    start_time: time
    end_time: time
    available: bool


class ConflictCheckResponse(BaseModel):
    has_conflict: bool


class BookingCreate(BaseModel):
    facility_id: UUID
    booking_date: date
    start_time: time
    end_time: time | None = None
    title: str | None = Field(default=None, max_length=255)
    details: dict[str, Any] = Field(default_factory=dict)


class BookingStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    facility_id: UUID
    merchant_id: UUID | None = None
    title: str
    status: str
    payment_status: str
    booking_date: date
    start_time: time
    end_time: time
    base_amount_cents: int
    created_at: datetime
