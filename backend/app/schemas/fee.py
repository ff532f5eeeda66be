"""Fee quote schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from app.models.payment_attempt import EntityKind
from app.services.fee_models.calculator import InstrumentClass
from app.services.fee_models.factory import FeeMode


class FeeQuoteRequest(BaseModel):
    base_amount_cents: int = Field(..., gt=0)
    entity_kind: EntityKind | None = None
    merchant_id: UUID | None = None
    payment_instrument_id: UUID | None = None
    instrument_class: InstrumentClass | None = None


class FeeQuoteResponse(BaseModel):
    success: bool = True
    base_amount_cents: int
    service_fee_cents: int
    total_amount_cents: int
    is_card: bool
    basis_points: int
    fixed_fee_cents: int
    fee_mode: FeeMode
