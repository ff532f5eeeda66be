"""Payment schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.payment_attempt import EntityKind


class PaymentCreate(BaseModel):
    """Schema for paying a domain record."""

    payment_instrument_id: UUID
    total_amount_cents: int = Field(
        ..., ge=0, description="Total the client displayed to the payer"
    )
    idempotency_key: str = Field(..., min_length=1, max_length=255)
    fraud_session_id: str | None = Field(default=None, max_length=255)


class PaymentResultResponse(BaseModel):
    """Outcome of a payment request; identical on replay."""

    success: bool
    payment_attempt_id: UUID
    entity_kind: EntityKind
    entity_id: UUID
    status: str
    transfer_id: str | None = None
    base_amount_cents: int
    service_fee_cents: int
    total_amount_cents: int
    failure_code: str | None = None
    failure_message: str | None = None


class PaymentAttemptResponse(BaseModel):
    """Schema for a payment history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    entity_kind: EntityKind
    entity_id: UUID
    base_amount_cents: int
    service_fee_cents: int
    total_amount_cents: int
    currency: str
    payment_instrument_id: UUID
    merchant_id: UUID | None = None
    idempotency_key: str
    transfer_id: str | None = None
    status: str
    failure_code: str | None = None
    failure_message: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
