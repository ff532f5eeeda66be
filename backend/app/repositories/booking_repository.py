"""Bookings (facility service applications) and their slot claims."""

from datetime import date, time
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.booking_slot_claim import BookingSlotClaim
from app.models.service_application import INACTIVE_BOOKING_STATUSES, ServiceApplication


class BookingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, booking_id: UUID) -> ServiceApplication | None:
        return (
            self.db.query(ServiceApplication)
            .filter(
                ServiceApplication.id == booking_id,
                ServiceApplication.facility_id.isnot(None),
            )
            .first()
        )

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        user_id: UUID | None = None,
        facility_id: UUID | None = None,
        booking_date: date | None = None,
    ) -> list[ServiceApplication]:
        query = self.db.query(ServiceApplication).filter(ServiceApplication.facility_id.isnot(None))
        if user_id is not None:
            query = query.filter(ServiceApplication.user_id == user_id)
        if facility_id is not None:
            query = query.filter(ServiceApplication.facility_id == facility_id)
        if booking_date is not None:
            query = query.filter(ServiceApplication.booking_date == booking_date)
        return (
            query.order_by(ServiceApplication.booking_date.desc(), ServiceApplication.start_time)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_active_for_day(
        self,
        facility_id: UUID,
        booking_date: date,
        exclude_booking_id: UUID | None = None,
    ) -> list[ServiceApplication]:
        """Bookings on the facility and day that still occupy their slot."""
        query = self.db.query(ServiceApplication).filter(
            ServiceApplication.facility_id == facility_id,
            ServiceApplication.booking_date == booking_date,
            ServiceApplication.status.notin_(INACTIVE_BOOKING_STATUSES),
        )
        if exclude_booking_id is not None:
            query = query.filter(ServiceApplication.id != exclude_booking_id)
        return query.all()

    def get_stale(self, before: date, statuses: list[str]) -> list[ServiceApplication]:
        return (
            self.db.query(ServiceApplication)
            .filter(
                ServiceApplication.facility_id.isnot(None),
                ServiceApplication.booking_date < before,
                ServiceApplication.status.in_(statuses),
            )
            .all()
        )

    def add_with_claims(self, booking: ServiceApplication, slot_starts: list[time]) -> None:
        """Stage the booking and one claim row per grid cell. Caller commits."""
        self.db.add(booking)
        self.db.flush()
        for slot_start in slot_starts:
            self.db.add(
                BookingSlotClaim(
                    facility_id=booking.facility_id,
                    booking_id=booking.id,
                    booking_date=booking.booking_date,
                    slot_start=slot_start,
                )
            )

    def release_claims(self, booking_id: UUID) -> int:
        """Delete the booking's claim rows. Caller commits."""
        count = (
            self.db.query(BookingSlotClaim)
            .filter(BookingSlotClaim.booking_id == booking_id)
            .delete(synchronize_session=False)
        )
        return int(count)

    def get_claims(self, facility_id: UUID, booking_date: date) -> list[BookingSlotClaim]:
        return (
            self.db.query(BookingSlotClaim)
            .filter(
                BookingSlotClaim.facility_id == facility_id,
                BookingSlotClaim.booking_date == booking_date,
            )
            .all()
        )
