"""Facility API endpoints."""

from datetime import date, time
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user, require_staff
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.models.facility import Facility
from app.repositories.facility_repository import FacilityRepository
from app.schemas.facility import (
    ConflictCheckResponse,
    FacilityCreate,
    FacilityResponse,
    SlotResponse,
)
from app.services import booking_service

router = APIRouter()


def _get_facility(db: Session, facility_id: UUID) -> Facility:
    facility = FacilityRepository(db).get_by_id(facility_id)
    if facility is None:
        raise NotFoundError("Facility not found")
    return facility


@router.post(
    "/",
    response_model=FacilityResponse,
    status_code=201,
    summary="Create facility",
    responses={
        400: {"description": "Invalid booking configuration"},
        401: {"description": "Staff access required"},
    },
)
async def create_facility(
    data: FacilityCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> Facility:
    booking_service.validate_facility_config(
        booking_mode=data.booking_mode.value,
        open_time=data.open_time,
        close_time=data.close_time,
        granularity_minutes=data.granularity_minutes,
        slot_duration_minutes=data.slot_duration_minutes,
        available_days=data.available_days,
    )
    fields = data.model_dump()
    fields["booking_mode"] = data.booking_mode.value
    return FacilityRepository(db).create(**fields)


@router.get(
    "/",
    response_model=list[FacilityResponse],
    summary="List facilities",
)
async def list_facilities(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[Facility]:
    return FacilityRepository(db).get_all(skip=skip, limit=limit)


@router.get(
    "/{facility_id}",
    response_model=FacilityResponse,
    summary="Get facility",
    responses={404: {"description": "Facility not found"}},
)
async def get_facility(
    facility_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Facility:
    return _get_facility(db, facility_id)


@router.get(
    "/{facility_id}/slots",
    response_model=list[SlotResponse],
    summary="List bookable slots",
    responses={404: {"description": "Facility not found"}},
)
async def list_slots(
    facility_id: UUID,
    booking_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[Any]:
    """Slots for the day, each flagged as free or taken."""
    facility = _get_facility(db, facility_id)
    return booking_service.available_slots(db, facility, booking_date)


@router.get(
    "/{facility_id}/conflicts",
    response_model=ConflictCheckResponse,
    summary="Check for booking conflicts",
    responses={
        400: {"description": "Outside operating hours or off the booking grid"},
        404: {"description": "Facility not found"},
    },
)
async def check_conflicts(
    facility_id: UUID,
    booking_date: date = Query(..., alias="date"),
    start_time: time = Query(...),
    end_time: time | None = Query(default=None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ConflictCheckResponse:
    facility = _get_facility(db, facility_id)
    end_time = booking_service.resolve_end_time(facility, start_time, end_time)
    booking_service.validate_booking_window(facility, booking_date, start_time, end_time)
    conflict = booking_service.has_conflict(db, facility_id, booking_date, start_time, end_time)
    return ConflictCheckResponse(has_conflict=conflict)
