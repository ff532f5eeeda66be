"""PaymentAttempt model - one tender of money against one domain record."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class PaymentAttemptStatus(str, Enum):
    """Payment attempt status enum."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EntityKind(str, Enum):
    """Kinds of domain record a payment can target."""

    PERMIT = "permit"
    BUSINESS_LICENSE = "business_license"
    TAX_SUBMISSION = "tax_submission"
    SERVICE_APPLICATION = "service_application"
    BILL = "bill"


class PaymentAttempt(Base):
    """Payment attempt model - the payment history of the portal.

    The target record is a tagged reference (``entity_kind`` + ``entity_id``),
    so exactly one record is always addressed.
    """

    __tablename__ = "payment_attempts"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)

    entity_kind = Column(String(30), nullable=False)
    entity_id = Column(UUIDType, nullable=False, index=True)

    # Amounts in cents
    base_amount_cents = Column(Integer, nullable=False)
    service_fee_cents = Column(Integer, nullable=False)
    total_amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    payment_instrument_id = Column(
        UUIDType,
        ForeignKey("user_payment_instruments.id", ondelete="RESTRICT"),
        nullable=False,
    )
    merchant_id = Column(UUIDType, ForeignKey("merchants.id", ondelete="RESTRICT"), nullable=True)
    finix_merchant_id = Column(String(255), nullable=True)
    fraud_session_id = Column(String(255), nullable=True)

    idempotency_key = Column(String(255), nullable=False, unique=True, index=True)
    transfer_id = Column(String(255), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=PaymentAttemptStatus.PENDING.value)

    failure_code = Column(String(100), nullable=True)
    failure_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
