"""Merchant model - a municipal department linked to a gateway merchant account."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, String, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    MERCHANT_CREATED = "merchant_created"
    PROCESSING_ENABLED = "processing_enabled"
    REJECTED = "rejected"
    DISABLED = "disabled"


class Merchant(Base):
    """Gateway-linked merchant.

    Onboarding, verification and settlement state is written only by the
    webhook ingestor; payment flows read ``finix_merchant_id``.
    """

    __tablename__ = "merchants"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    subcategory = Column(String(100), nullable=True)
    statement_descriptor = Column(String(50), nullable=True)

    finix_merchant_id = Column(String(255), nullable=True, unique=True, index=True)
    finix_identity_id = Column(String(255), nullable=True, index=True)

    verification_status = Column(
        String(30), nullable=False, default=VerificationStatus.PENDING.value
    )
    processing_status = Column(String(30), nullable=False, default=ProcessingStatus.PENDING.value)
    onboarding_state = Column(String(30), nullable=True)
    processing_enabled = Column(Boolean, nullable=False, default=False)
    settlement_enabled = Column(Boolean, nullable=False, default=False)
    gateway_metadata = Column(JSON, nullable=True, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
