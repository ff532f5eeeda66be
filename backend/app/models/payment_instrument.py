"""Saved payment instruments owned by portal users."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class InstrumentType(str, Enum):
    PAYMENT_CARD = "PAYMENT_CARD"
    BANK_ACCOUNT = "BANK_ACCOUNT"


class WalletType(str, Enum):
    GOOGLE_PAY = "GOOGLE_PAY"
    APPLE_PAY = "APPLE_PAY"


class PaymentInstrument(Base):
    __tablename__ = "user_payment_instruments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    instrument_type = Column(String(20), nullable=False, default=InstrumentType.PAYMENT_CARD.value)
    finix_payment_instrument_id = Column(String(255), nullable=False, index=True)
    enabled = Column(Boolean, nullable=False, default=True)

    nickname = Column(String(100), nullable=True)
    wallet_type = Column(String(20), nullable=True)
    card_brand = Column(String(30), nullable=True)
    card_last_four = Column(String(4), nullable=True)
    card_expiration_month = Column(Integer, nullable=True)
    card_expiration_year = Column(Integer, nullable=True)
    bank_last_four = Column(String(4), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
