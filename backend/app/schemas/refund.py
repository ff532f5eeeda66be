"""Refund and dispute schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RefundCreate(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)
    amount_cents: int | None = Field(
        default=None, gt=0, description="Defaults to the full amount charged"
    )


class RefundResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    payment_attempt_id: UUID
    requested_by: UUID
    reason: str
    amount_cents: int
    original_amount_cents: int
    currency: str
    transfer_id: str
    reversal_id: str | None = None
    status: str
    failure_code: str | None = None
    failure_message: str | None = None
    created_at: datetime
    completed_at: datetime | None = None


class DisputeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    finix_dispute_id: str
    transfer_id: str | None = None
    payment_attempt_id: UUID | None = None
    merchant_id: UUID | None = None
    state: str
    reason: str | None = None
    amount_cents: int
    respond_by: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
