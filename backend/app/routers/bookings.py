"""Facility booking API endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user, require_staff
from app.core.database import get_db
from app.core.exceptions import NotFoundError, PortalError
from app.core.idempotency import (
    IdempotencyResult,
    check_idempotency,
    record_idempotency_response,
)
from app.models.service_application import ServiceApplication
from app.repositories.booking_repository import BookingRepository
from app.repositories.facility_repository import FacilityRepository
from app.repositories.idempotency_repository import IdempotencyRepository
from app.schemas.facility import BookingCreate, BookingResponse, BookingStatusUpdate
from app.services import booking_service

router = APIRouter()


def _get_booking(db: Session, booking_id: UUID, user: CurrentUser) -> ServiceApplication:
    booking = BookingRepository(db).get_by_id(booking_id)
    if booking is None or (booking.user_id != user.id and not user.is_staff):
        raise NotFoundError("Booking not found")
    return booking


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=201,
    summary="Book a facility",
    responses={
        400: {"description": "Outside operating hours or off the booking grid"},
        404: {"description": "Facility not found"},
        409: {"description": "Slot already booked"},
    },
)
async def create_booking(
    data: BookingCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ServiceApplication | JSONResponse:
    """Create a pending booking.

    An ``Idempotency-Key`` header makes retries return the first response.
    """
    idempotency = check_idempotency(request, db, user.id)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    try:
        facility = FacilityRepository(db).get_by_id(data.facility_id)
        if facility is None:
            raise NotFoundError("Facility not found")

        booking = booking_service.create_booking(
            db,
            facility,
            user_id=user.id,
            booking_date=data.booking_date,
            start_time=data.start_time,
            end_time=data.end_time,
            title=data.title,
            details=data.details,
        )
    except PortalError:
        if isinstance(idempotency, IdempotencyResult):
            IdempotencyRepository(db).release(user.id, idempotency.key)
        raise

    if isinstance(idempotency, IdempotencyResult):
        body = BookingResponse.model_validate(booking).model_dump(mode="json")
        record_idempotency_response(db, user.id, idempotency.key, 201, body)

    return booking


@router.get(
    "/",
    response_model=list[BookingResponse],
    summary="List bookings",
)
async def list_bookings(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    facility_id: UUID | None = None,
    booking_date: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[ServiceApplication]:
    """List the caller's bookings. Staff see every booking."""
    return BookingRepository(db).get_all(
        skip=skip,
        limit=limit,
        user_id=None if user.is_staff else user.id,
        facility_id=facility_id,
        booking_date=booking_date,
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking",
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ServiceApplication:
    return _get_booking(db, booking_id, user)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel booking",
    responses={
        400: {"description": "Booking cannot be cancelled"},
        404: {"description": "Booking not found"},
    },
)
async def cancel_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ServiceApplication:
    booking = _get_booking(db, booking_id, user)
    return booking_service.cancel_booking(db, booking, user.id, is_staff=user.is_staff)


@router.post(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Review booking",
    responses={
        400: {"description": "Illegal status transition"},
        401: {"description": "Staff access required"},
        404: {"description": "Booking not found"},
    },
)
async def review_booking(
    booking_id: UUID,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> ServiceApplication:
    booking = _get_booking(db, booking_id, user)
    return booking_service.review_booking(db, booking, data.status)
