"""Payment API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user, require_staff
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.core.idempotency import REPLAY_HEADER
from app.models.payment_attempt import EntityKind, PaymentAttempt, PaymentAttemptStatus
from app.models.refund import Refund
from app.repositories.payment_attempt_repository import PaymentAttemptRepository
from app.repositories.refund_repository import RefundRepository
from app.schemas.payment import PaymentAttemptResponse, PaymentCreate, PaymentResultResponse
from app.schemas.refund import RefundCreate, RefundResponse
from app.services.payment_service import PaymentOrchestrator
from app.services.refund_service import RefundService

router = APIRouter()


@router.get(
    "/",
    response_model=list[PaymentAttemptResponse],
    summary="List payment history",
    responses={401: {"description": "Unauthorized – invalid or missing token"}},
)
async def list_payments(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    entity_kind: EntityKind | None = None,
    status: PaymentAttemptStatus | None = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[PaymentAttempt]:
    """List the caller's payment attempts, newest first."""
    repo = PaymentAttemptRepository(db)
    return repo.get_all(
        skip=skip,
        limit=limit,
        user_id=user.id,
        entity_kind=entity_kind,
        status=status,
    )


@router.get(
    "/{attempt_id}",
    response_model=PaymentAttemptResponse,
    summary="Get payment attempt",
    responses={
        401: {"description": "Unauthorized – invalid or missing token"},
        404: {"description": "Payment attempt not found"},
    },
)
async def get_payment(
    attempt_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentAttempt:
    repo = PaymentAttemptRepository(db)
    attempt = repo.get_by_id(attempt_id, user_id=None if user.is_staff else user.id)
    if not attempt:
        raise NotFoundError("Payment attempt not found")
    return attempt


@router.post(
    "/{attempt_id}/refund",
    response_model=RefundResponse,
    status_code=201,
    summary="Refund payment",
    responses={
        400: {"description": "Payment not refundable or invalid amount"},
        401: {"description": "Staff access required"},
        404: {"description": "Payment attempt not found"},
        500: {"description": "Payment gateway failure"},
    },
)
async def refund_payment(
    attempt_id: UUID,
    data: RefundCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> Refund:
    """Reverse a succeeded payment in full, or partially when
    ``amount_cents`` is given. The paid record keeps its status."""
    service = RefundService(db)
    return service.refund_payment(
        attempt_id=attempt_id,
        requested_by=user.id,
        reason=data.reason,
        amount_cents=data.amount_cents,
    )


@router.post(
    "/{entity_kind}/{entity_id}",
    response_model=PaymentResultResponse,
    summary="Pay for a record",
    responses={
        400: {"description": "Record not payable or amount mismatch"},
        401: {"description": "Caller does not own the record or instrument"},
        404: {"description": "Record not found"},
        500: {"description": "Payment gateway failure"},
    },
)
async def pay_record(
    entity_kind: EntityKind,
    entity_id: UUID,
    data: PaymentCreate,
    response: Response,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentResultResponse:
    """Charge the caller's instrument for a permit, license, tax submission,
    service application or bill.

    Retrying with the same ``idempotency_key`` returns the original result
    with the ``Idempotency-Replayed: true`` header and never charges twice.
    """
    orchestrator = PaymentOrchestrator(db)
    result = orchestrator.process_payment(
        entity_kind=entity_kind,
        entity_id=entity_id,
        instrument_id=data.payment_instrument_id,
        claimed_total_cents=data.total_amount_cents,
        idempotency_key=data.idempotency_key,
        caller_id=user.id,
        fraud_session_id=data.fraud_session_id,
    )
    if result.replayed:
        response.headers[REPLAY_HEADER] = "true"
    return PaymentResultResponse(**result.to_dict())


@router.get(
    "/{attempt_id}/refunds",
    response_model=list[RefundResponse],
    summary="List payment refunds",
    responses={
        401: {"description": "Staff access required"},
        404: {"description": "Payment attempt not found"},
    },
)
async def list_refunds(
    attempt_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> list[Refund]:
    if PaymentAttemptRepository(db).get_by_id(attempt_id) is None:
        raise NotFoundError("Payment attempt not found")
    return RefundRepository(db).get_for_attempt(attempt_id)
