from sqlalchemy import Column, Date, DateTime, ForeignKey, Time, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class BookingSlotClaim(Base):
    """One grid cell of a facility's day held by an active booking.

    The unique constraint makes two overlapping bookings impossible to commit.
    """

    __tablename__ = "booking_slot_claims"
    __table_args__ = (
        UniqueConstraint(
            "facility_id", "booking_date", "slot_start", name="uq_booking_slot_claim"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    facility_id = Column(
        UUIDType, ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    booking_id = Column(
        UUIDType,
        ForeignKey("service_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    booking_date = Column(Date, nullable=False)
    slot_start = Column(Time, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
