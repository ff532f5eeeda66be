"""Per-merchant fee schedule."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class MerchantFeeProfile(Base):
    """Card and bank-transfer fee rates for a merchant.

    Rates are basis points, fees are integer cents. Read by the payment flow,
    never written by it.
    """

    __tablename__ = "merchant_fee_profiles"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_id = Column(
        UUIDType,
        ForeignKey("merchants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    basis_points = Column(Integer, nullable=False, default=250)
    fixed_fee = Column(Integer, nullable=False, default=50)
    ach_basis_points = Column(Integer, nullable=False, default=20)
    ach_fixed_fee = Column(Integer, nullable=False, default=50)
    ach_basis_points_fee_limit = Column(Integer, nullable=True)

    ach_debit_return_fixed_fee = Column(Integer, nullable=False, default=0)
    ach_credit_return_fixed_fee = Column(Integer, nullable=False, default=0)
    dispute_fixed_fee = Column(Integer, nullable=False, default=0)
    dispute_inquiry_fixed_fee = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
