"""Domain record schemas shared by every payable record kind."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RecordCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    details: dict[str, Any] = Field(default_factory=dict)

    # Staff only
    user_id: UUID | None = None
    merchant_id: UUID | None = None
    base_amount_cents: int | None = Field(default=None, ge=0)

    # Kind-specific
    permit_type: str | None = None
    business_name: str | None = None
    tax_type: str | None = None
    tax_period: str | None = None
    bill_number: str | None = None
    due_date: date | None = None
    service_type: str | None = None


class RecordStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    base_amount_cents: int | None = Field(default=None, ge=0)
    merchant_id: UUID | None = None


class RecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    merchant_id: UUID | None = None
    title: str
    status: str
    payment_status: str
    base_amount_cents: int
    service_fee_cents: int | None = None
    total_amount_cents: int | None = None
    payment_reference: str | None = None
    paid_at: datetime | None = None
    details: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
