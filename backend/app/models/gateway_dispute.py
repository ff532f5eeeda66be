"""Chargebacks opened against portal transfers, as reported by the gateway."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class GatewayDispute(Base):
    __tablename__ = "gateway_disputes"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    finix_dispute_id = Column(String(255), nullable=False, unique=True, index=True)
    transfer_id = Column(String(255), nullable=True, index=True)
    payment_attempt_id = Column(
        UUIDType, ForeignKey("payment_attempts.id", ondelete="SET NULL"), nullable=True
    )
    merchant_id = Column(UUIDType, ForeignKey("merchants.id", ondelete="SET NULL"), nullable=True)

    state = Column(String(30), nullable=False, default="PENDING")
    reason = Column(String(100), nullable=True)
    amount_cents = Column(Integer, nullable=False, default=0)
    respond_by = Column(String(64), nullable=True)
    message = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)

    last_event_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
