"""Refund model - a gateway reversal of a succeeded payment attempt."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class RefundStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Refund(Base):
    """Money returned to the payer through a reversal of the original transfer.

    A payment attempt carries at most one refund that has not failed.
    """

    __tablename__ = "refunds"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    payment_attempt_id = Column(
        UUIDType,
        ForeignKey("payment_attempts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    requested_by = Column(UUIDType, nullable=False)
    reason = Column(Text, nullable=False)

    amount_cents = Column(Integer, nullable=False)
    original_amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    transfer_id = Column(String(255), nullable=False)
    reversal_id = Column(String(255), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=RefundStatus.PENDING.value)
    failure_code = Column(String(100), nullable=True)
    failure_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)
