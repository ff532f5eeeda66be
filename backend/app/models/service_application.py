"""Service applications, including facility bookings."""

from enum import Enum

from sqlalchemy import Column, Date, ForeignKey, Index, String, Time

from app.core.database import Base
from app.models.domain_record import PayableRecordMixin
from app.models.shared import UUIDType


class ServiceApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    DENIED = "denied"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    ISSUED = "issued"


# Bookings in these states do not occupy their time slot.
INACTIVE_BOOKING_STATUSES = frozenset(
    {
        ServiceApplicationStatus.DRAFT.value,
        ServiceApplicationStatus.CANCELLED.value,
        ServiceApplicationStatus.DENIED.value,
        ServiceApplicationStatus.EXPIRED.value,
    }
)


class ServiceApplication(PayableRecordMixin, Base):
    """A service application; with a facility reference it is a booking."""

    __tablename__ = "service_applications"
    __table_args__ = (
        Index("ix_service_applications_facility_date", "facility_id", "booking_date"),
    )

    facility_id = Column(UUIDType, ForeignKey("facilities.id", ondelete="RESTRICT"), nullable=True)
    booking_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    service_type = Column(String(100), nullable=True)

    @property
    def is_booking(self) -> bool:
        return self.facility_id is not None
