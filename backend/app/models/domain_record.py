"""Columns shared by every record a resident can pay for."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import declared_attr

from app.models.shared import UUIDType, generate_uuid


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class PayableRecordMixin:
    """Ownership, amounts and payment bookkeeping for a domain record.

    ``status`` is kind-specific; ``payment_status`` flips to paid only on a
    successful payment attempt, together with the forward status transition.
    """

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(30), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)

    base_amount_cents = Column(Integer, nullable=False, default=0)
    service_fee_cents = Column(Integer, nullable=True)
    total_amount_cents = Column(Integer, nullable=True)
    payment_reference = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    details = Column(JSON, nullable=True, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @declared_attr
    def merchant_id(cls):  # noqa: N805
        return Column(UUIDType, ForeignKey("merchants.id", ondelete="RESTRICT"), nullable=True)
