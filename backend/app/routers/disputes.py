"""Dispute review endpoints for staff."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, require_staff
from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.models.gateway_dispute import GatewayDispute
from app.repositories.gateway_dispute_repository import GatewayDisputeRepository
from app.schemas.refund import DisputeResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[DisputeResponse],
    summary="List disputes",
    responses={401: {"description": "Staff access required"}},
)
async def list_disputes(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    state: str | None = Query(default=None, description="Gateway dispute state, e.g. PENDING"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> list[GatewayDispute]:
    """Disputes reported by the payment gateway, newest first."""
    return GatewayDisputeRepository(db).get_all(skip=skip, limit=limit, state=state)


@router.get(
    "/{dispute_id}",
    response_model=DisputeResponse,
    summary="Get dispute",
    responses={
        401: {"description": "Staff access required"},
        404: {"description": "Dispute not found"},
    },
)
async def get_dispute(
    dispute_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> GatewayDispute:
    dispute = GatewayDisputeRepository(db).get_by_id(dispute_id)
    if not dispute:
        raise NotFoundError("Dispute not found")
    return dispute
