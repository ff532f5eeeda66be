"""Domain record API endpoints (permits, licenses, tax submissions, applications, bills)."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user, require_staff
from app.core.database import get_db
from app.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError
from app.models.domain_record import PaymentStatus
from app.models.payment_attempt import EntityKind
from app.repositories.domain_record_repository import DomainRecordRepository
from app.schemas.record import RecordCreate, RecordResponse, RecordStatusUpdate
from app.services import booking_service
from app.services.payable_entities import get_payable_entity

router = APIRouter()

_STAFF_ONLY_FIELDS = ("user_id", "merchant_id", "base_amount_cents")
_KIND_FIELDS = (
    "permit_type",
    "business_name",
    "tax_type",
    "tax_period",
    "bill_number",
    "due_date",
    "service_type",
)


@router.post(
    "/{kind}",
    response_model=RecordResponse,
    status_code=201,
    summary="Create record",
    responses={
        401: {"description": "Unauthorized – invalid or missing token"},
        404: {"description": "Unknown record kind"},
    },
)
async def create_record(
    kind: EntityKind,
    data: RecordCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Any:
    """Create a record in its kind's initial status.

    Only staff may assign the owner, the merchant or the amount due.
    """
    definition = get_payable_entity(kind)
    provided = data.model_dump(exclude_unset=True)
    if not user.is_staff and any(provided.get(name) is not None for name in _STAFF_ONLY_FIELDS):
        raise AuthorizationError("Only municipal staff can set owner, merchant or amount")

    fields: dict[str, Any] = {
        "title": data.title,
        "details": data.details,
        "status": definition.initial_status,
        "merchant_id": data.merchant_id,
        "base_amount_cents": data.base_amount_cents or 0,
    }
    for name in _KIND_FIELDS:
        value = getattr(data, name)
        if value is not None and hasattr(definition.model, name):
            fields[name] = value

    repo = DomainRecordRepository(db, definition.model)
    return repo.create(data.user_id or user.id, **fields)


@router.get(
    "/{kind}",
    response_model=list[RecordResponse],
    summary="List records",
    responses={401: {"description": "Unauthorized – invalid or missing token"}},
)
async def list_records(
    kind: EntityKind,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: str | None = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[Any]:
    """List the caller's records of a kind. Staff see every record."""
    definition = get_payable_entity(kind)
    repo = DomainRecordRepository(db, definition.model)
    return repo.get_all(
        skip=skip,
        limit=limit,
        user_id=None if user.is_staff else user.id,
        status=status,
    )


def _get_visible_record(
    db: Session, kind: EntityKind, record_id: UUID, user: CurrentUser
) -> Any:
    definition = get_payable_entity(kind)
    record = DomainRecordRepository(db, definition.model).get_by_id(record_id)
    if record is None or (record.user_id != user.id and not user.is_staff):
        raise NotFoundError(f"{definition.label} not found")
    return record


@router.get(
    "/{kind}/{record_id}",
    response_model=RecordResponse,
    summary="Get record",
    responses={
        401: {"description": "Unauthorized – invalid or missing token"},
        404: {"description": "Record not found"},
    },
)
async def get_record(
    kind: EntityKind,
    record_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Any:
    return _get_visible_record(db, kind, record_id, user)


@router.post(
    "/{kind}/{record_id}/status",
    response_model=RecordResponse,
    summary="Review record",
    responses={
        400: {"description": "Illegal status transition"},
        401: {"description": "Staff access required"},
        404: {"description": "Record not found"},
    },
)
async def update_record_status(
    kind: EntityKind,
    record_id: UUID,
    data: RecordStatusUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> Any:
    """Apply a staff review transition.

    Statuses reached by paying (issued, paid) cannot be set here.
    """
    definition = get_payable_entity(kind)
    record = _get_visible_record(db, kind, record_id, user)

    if data.status == definition.paid_status or data.status == PaymentStatus.PAID.value:
        raise InvalidStateError(f"Status {data.status} is set by payment, not by review")
    if not definition.can_transition(str(record.status), data.status):
        raise InvalidStateError(
            f"Cannot move {definition.label.lower()} from {record.status} to {data.status}"
        )

    if record.payment_status != PaymentStatus.PAID.value:
        if data.base_amount_cents is not None:
            record.base_amount_cents = data.base_amount_cents
        if data.merchant_id is not None:
            record.merchant_id = data.merchant_id

    if kind == EntityKind.SERVICE_APPLICATION and record.facility_id is not None:
        return booking_service.set_booking_status(db, record, data.status)
    return DomainRecordRepository(db, definition.model).set_status(record, data.status)
