"""Facility bookings: operating-hour gates, overlap detection and slot claims.

A booking is a ``ServiceApplication`` with a facility reference. Creation runs
the advisory overlap check and then inserts one ``BookingSlotClaim`` per grid
cell the booking covers, in the same transaction as the booking itself. The
unique constraint on the claims is what actually prevents two concurrent
requests from double-booking a slot.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidIntervalError,
    InvalidStateError,
    OutsideOperatingHoursError,
    ValidationFailedError,
)
from app.models.facility import ALLOWED_GRANULARITIES, WEEKDAYS, BookingMode, Facility
from app.models.payment_attempt import EntityKind
from app.models.service_application import ServiceApplication, ServiceApplicationStatus
from app.repositories.booking_repository import BookingRepository
from app.services.payable_entities import get_payable_entity

logger = logging.getLogger(__name__)

RELEASING_STATUSES = frozenset(
    {
        ServiceApplicationStatus.CANCELLED.value,
        ServiceApplicationStatus.DENIED.value,
        ServiceApplicationStatus.EXPIRED.value,
    }
)

CANCELLABLE_STATUSES = frozenset(
    {
        ServiceApplicationStatus.DRAFT.value,
        ServiceApplicationStatus.PENDING.value,
        ServiceApplicationStatus.APPROVED.value,
    }
)


@dataclass
class SlotAvailability:
    start_time: time
    end_time: time
    available: bool


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def _fmt(value: time) -> str:
    return value.strftime("%H:%M")


def overlaps(start_a: time, end_a: time, start_b: time, end_b: time) -> bool:
    """Half-open interval overlap test."""
    return start_a < end_b and start_b < end_a


def validate_facility_config(
    booking_mode: str,
    open_time: time,
    close_time: time,
    granularity_minutes: int,
    slot_duration_minutes: int,
    available_days: list[str],
) -> None:
    if granularity_minutes not in ALLOWED_GRANULARITIES:
        raise ValidationFailedError(
            f"granularity_minutes must be one of {', '.join(map(str, ALLOWED_GRANULARITIES))}"
        )
    if close_time <= open_time:
        raise ValidationFailedError("close_time must be after open_time")
    if slot_duration_minutes <= 0 or slot_duration_minutes % granularity_minutes:
        raise ValidationFailedError(
            "slot_duration_minutes must be a multiple of granularity_minutes"
        )
    if BookingMode(booking_mode) == BookingMode.TIME_PERIOD and (
        (_minutes(close_time) - _minutes(open_time)) < slot_duration_minutes
    ):
        raise ValidationFailedError("Opening hours are shorter than one slot")
    unknown = [day for day in available_days if day.lower() not in WEEKDAYS]
    if unknown:
        raise ValidationFailedError(f"Unknown weekday(s): {', '.join(unknown)}")


def resolve_end_time(facility: Facility, start_time: time, end_time: time | None = None) -> time:
    """Fill in the default duration when the caller gives only a start."""
    if end_time is not None:
        return end_time
    end_minutes = _minutes(start_time) + int(facility.slot_duration_minutes)
    if end_minutes >= 24 * 60:
        raise OutsideOperatingHoursError("Requested time is outside operating hours")
    return _from_minutes(end_minutes)


def validate_booking_window(
    facility: Facility, booking_date: date, start_time: time, end_time: time
) -> None:
    """Apply the day-of-week, opening hours and grid gates.

    Raises OutsideOperatingHoursError or InvalidIntervalError. Overlap with
    other bookings is not considered here.
    """
    weekday = WEEKDAYS[booking_date.weekday()]
    open_days = {day.lower() for day in facility.available_days or []}
    if weekday not in open_days:
        raise OutsideOperatingHoursError(f"{facility.name} is not open on {weekday.capitalize()}")

    if end_time <= start_time:
        raise InvalidIntervalError("End time must be after start time")

    if start_time < facility.open_time or end_time > facility.close_time:
        raise OutsideOperatingHoursError(
            f"Requested time is outside operating hours "
            f"({_fmt(facility.open_time)}-{_fmt(facility.close_time)})"
        )

    granularity = int(facility.granularity_minutes)
    offset = _minutes(start_time) - _minutes(facility.open_time)
    duration = _minutes(end_time) - _minutes(start_time)

    if facility.booking_mode == BookingMode.TIME_PERIOD.value:
        slot = int(facility.slot_duration_minutes)
        if offset % slot:
            raise InvalidIntervalError(f"Start time must fall on a {slot}-minute slot boundary")
        if duration != slot:
            raise InvalidIntervalError(f"Bookings must be exactly one {slot}-minute slot")
        return

    if offset % granularity:
        raise InvalidIntervalError(f"Start time must align to the {granularity}-minute grid")
    if duration % granularity:
        raise InvalidIntervalError(f"Duration must be a multiple of {granularity} minutes")


def grid_cells(facility: Facility, start_time: time, end_time: time) -> list[time]:
    """Start times of the grid cells covered by ``[start_time, end_time)``."""
    step = int(facility.granularity_minutes)
    return [
        _from_minutes(minute)
        for minute in range(_minutes(start_time), _minutes(end_time), step)
    ]


def has_conflict(
    db: Session,
    facility_id: UUID,
    booking_date: date,
    start_time: time,
    end_time: time,
    exclude_booking_id: UUID | None = None,
) -> bool:
    """Whether an active booking on the facility and day overlaps the interval."""
    existing = BookingRepository(db).get_active_for_day(
        facility_id, booking_date, exclude_booking_id=exclude_booking_id
    )
    return any(
        overlaps(booking.start_time, booking.end_time, start_time, end_time)
        for booking in existing
    )


def available_slots(db: Session, facility: Facility, booking_date: date) -> list[SlotAvailability]:
    """Grid slots of the day with a flag for whether they are free."""
    weekday = WEEKDAYS[booking_date.weekday()]
    if weekday not in {day.lower() for day in facility.available_days or []}:
        return []

    duration = int(facility.slot_duration_minutes)
    if facility.booking_mode == BookingMode.TIME_PERIOD.value:
        step = duration
    else:
        step = int(facility.granularity_minutes)

    repo = BookingRepository(db)
    active = repo.get_active_for_day(facility.id, booking_date)  # type: ignore[arg-type]
    slots = []
    close = _minutes(facility.close_time)
    start = _minutes(facility.open_time)
    while start + duration <= close:
        slot_start, slot_end = _from_minutes(start), _from_minutes(start + duration)
        taken = any(
            overlaps(booking.start_time, booking.end_time, slot_start, slot_end)
            for booking in active
        )
        slots.append(
            SlotAvailability(start_time=slot_start, end_time=slot_end, available=not taken)
        )
        start += step
    return slots


def create_booking(
    db: Session,
    facility: Facility,
    user_id: UUID,
    booking_date: date,
    start_time: time,
    end_time: time | None = None,
    title: str | None = None,
    details: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> ServiceApplication:
    """Book a facility slot for ``user_id``.

    ``now`` is the local wall-clock time of the facility; slots that have
    already started today cannot be booked.

    Raises OutsideOperatingHoursError, InvalidIntervalError or ConflictError.
    """
    end_time = resolve_end_time(facility, start_time, end_time)
    now = now or datetime.now(ZoneInfo(settings.facility_timezone))
    today = now.date()

    if booking_date < today:
        raise OutsideOperatingHoursError("Cannot book a date in the past")
    if booking_date == today and start_time < now.time():
        raise OutsideOperatingHoursError("Cannot book a time that has already started")
    if booking_date > today + timedelta(days=int(facility.max_advance_days)):
        raise OutsideOperatingHoursError(
            f"Bookings can be made at most {facility.max_advance_days} days in advance"
        )

    validate_booking_window(facility, booking_date, start_time, end_time)

    if has_conflict(db, facility.id, booking_date, start_time, end_time):  # type: ignore[arg-type]
        raise ConflictError("Requested time overlaps an existing booking")

    booking = ServiceApplication(
        user_id=user_id,
        merchant_id=facility.merchant_id,
        title=title or f"{facility.name} booking",
        status=ServiceApplicationStatus.PENDING.value,
        service_type="facility_booking",
        facility_id=facility.id,
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        base_amount_cents=int(facility.base_fee_cents or 0),
        details=details or {},
    )
    repo = BookingRepository(db)
    try:
        repo.add_with_claims(booking, grid_cells(facility, start_time, end_time))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(
            "Slot claim rejected for facility %s on %s %s-%s",
            facility.id,
            booking_date,
            _fmt(start_time),
            _fmt(end_time),
        )
        raise ConflictError("Requested time overlaps an existing booking") from None

    db.refresh(booking)
    logger.info(
        "Booking %s created for facility %s on %s %s-%s",
        booking.id,
        facility.id,
        booking_date,
        _fmt(start_time),
        _fmt(end_time),
    )
    return booking


def set_booking_status(db: Session, booking: ServiceApplication, status: str) -> ServiceApplication:
    """Write a new status and release the slot claims when it frees the slot."""
    booking.status = status  # type: ignore[assignment]
    if status in RELEASING_STATUSES:
        released = BookingRepository(db).release_claims(booking.id)  # type: ignore[arg-type]
        logger.info(
            "Booking %s moved to %s, released %d slot claim(s)", booking.id, status, released
        )
    db.commit()
    db.refresh(booking)
    return booking


def review_booking(db: Session, booking: ServiceApplication, status: str) -> ServiceApplication:
    """Staff review of a booking (approve, deny, or cancel an approved one)."""
    definition = get_payable_entity(EntityKind.SERVICE_APPLICATION)
    if not definition.can_transition(str(booking.status), status):
        raise InvalidStateError(f"Cannot move booking from {booking.status} to {status}")
    return set_booking_status(db, booking, status)


def cancel_booking(
    db: Session, booking: ServiceApplication, user_id: UUID, is_staff: bool = False
) -> ServiceApplication:
    if booking.user_id != user_id and not is_staff:
        raise AuthorizationError("Not authorized to cancel this booking")
    if booking.status not in CANCELLABLE_STATUSES:
        raise InvalidStateError(f"Booking cannot be cancelled in status {booking.status}")
    return set_booking_status(db, booking, ServiceApplicationStatus.CANCELLED.value)


def expire_stale_bookings(db: Session, today: date | None = None) -> int:
    """Expire draft and pending bookings whose date has passed."""
    today = today or datetime.now(UTC).date()
    repo = BookingRepository(db)
    stale = repo.get_stale(
        today,
        [ServiceApplicationStatus.DRAFT.value, ServiceApplicationStatus.PENDING.value],
    )
    for booking in stale:
        booking.status = ServiceApplicationStatus.EXPIRED.value  # type: ignore[assignment]
        repo.release_claims(booking.id)  # type: ignore[arg-type]
    db.commit()
    if stale:
        logger.info("Expired %d stale booking(s)", len(stale))
    return len(stale)
