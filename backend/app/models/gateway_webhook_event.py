"""Audit log of events received from the payment gateway."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class WebhookEventStatus(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"


class GatewayWebhookEvent(Base):
    __tablename__ = "gateway_webhook_events"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    event_id = Column(String(255), nullable=True, index=True)
    event_type = Column(String(100), nullable=False)
    entity = Column(String(50), nullable=True)
    entity_id = Column(String(255), nullable=True, index=True)
    payload = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False, default=WebhookEventStatus.PROCESSED.value)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
