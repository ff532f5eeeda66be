"""Payment instrument schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.payment_instrument import InstrumentType, WalletType


class PaymentInstrumentCreate(BaseModel):
    """Register an instrument already tokenized by the gateway."""

    finix_payment_instrument_id: str = Field(..., min_length=1, max_length=255)
    instrument_type: InstrumentType = InstrumentType.PAYMENT_CARD
    nickname: str | None = Field(default=None, max_length=100)
    card_brand: str | None = Field(default=None, max_length=30)
    card_last_four: str | None = Field(default=None, min_length=4, max_length=4)
    card_expiration_month: int | None = Field(default=None, ge=1, le=12)
    card_expiration_year: int | None = None
    bank_last_four: str | None = Field(default=None, min_length=4, max_length=4)


class WalletInstrumentCreate(BaseModel):
    """Tokenize a Google Pay or Apple Pay token through the gateway."""

    wallet_type: WalletType
    third_party_token: str = Field(..., min_length=1)
    identity_id: str | None = None
    merchant_id: UUID | None = None
    nickname: str | None = Field(default=None, max_length=100)


class PaymentInstrumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    instrument_type: str
    finix_payment_instrument_id: str
    enabled: bool
    nickname: str | None = None
    wallet_type: str | None = None
    card_brand: str | None = None
    card_last_four: str | None = None
    card_expiration_month: int | None = None
    card_expiration_year: int | None = None
    bank_last_four: str | None = None
    created_at: datetime
