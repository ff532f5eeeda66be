"""Merchant administration endpoints for staff."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, require_staff
from app.core.database import get_db
from app.core.exceptions import ConflictError, NotFoundError
from app.models.merchant import Merchant
from app.models.merchant_fee_profile import MerchantFeeProfile
from app.repositories.merchant_repository import MerchantRepository
from app.schemas.merchant import (
    FeeProfileResponse,
    FeeProfileUpdate,
    MerchantCreate,
    MerchantResponse,
    MerchantUpdate,
)

router = APIRouter()

# Rates that may be cleared by sending null.
NULLABLE_FEE_FIELDS = {"ach_basis_points_fee_limit"}


def _get_merchant(repo: MerchantRepository, merchant_id: UUID) -> Merchant:
    merchant = repo.get_by_id(merchant_id)
    if merchant is None:
        raise NotFoundError("Merchant not found")
    return merchant


def _ensure_gateway_id_free(
    repo: MerchantRepository, finix_merchant_id: str | None, merchant_id: UUID | None = None
) -> None:
    if not finix_merchant_id:
        return
    existing = repo.get_by_finix_merchant_id(finix_merchant_id)
    if existing is not None and existing.id != merchant_id:
        raise ConflictError(f"Gateway merchant {finix_merchant_id} is already linked")


@router.post(
    "/",
    response_model=MerchantResponse,
    status_code=201,
    summary="Create merchant",
    responses={
        401: {"description": "Staff access required"},
        409: {"description": "Gateway merchant already linked"},
    },
)
async def create_merchant(
    data: MerchantCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> Merchant:
    repo = MerchantRepository(db)
    _ensure_gateway_id_free(repo, data.finix_merchant_id)
    return repo.create(**data.model_dump())


@router.get(
    "/",
    response_model=list[MerchantResponse],
    summary="List merchants",
    responses={401: {"description": "Staff access required"}},
)
async def list_merchants(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> list[Merchant]:
    return MerchantRepository(db).get_all(skip=skip, limit=limit)


@router.get(
    "/{merchant_id}",
    response_model=MerchantResponse,
    summary="Get merchant",
    responses={
        401: {"description": "Staff access required"},
        404: {"description": "Merchant not found"},
    },
)
async def get_merchant(
    merchant_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> Merchant:
    return _get_merchant(MerchantRepository(db), merchant_id)


@router.patch(
    "/{merchant_id}",
    response_model=MerchantResponse,
    summary="Update merchant",
    responses={
        401: {"description": "Staff access required"},
        404: {"description": "Merchant not found"},
        409: {"description": "Gateway merchant already linked"},
    },
)
async def update_merchant(
    merchant_id: UUID,
    data: MerchantUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> Merchant:
    """Edit descriptive fields and gateway links.

    Onboarding and processing state stay under webhook control.
    """
    repo = MerchantRepository(db)
    merchant = _get_merchant(repo, merchant_id)
    updates = data.model_dump(exclude_unset=True)
    if updates.get("merchant_name") is None:
        updates.pop("merchant_name", None)
    _ensure_gateway_id_free(repo, updates.get("finix_merchant_id"), merchant_id)
    return repo.apply_updates(merchant, updates)


@router.get(
    "/{merchant_id}/fee_profile",
    response_model=FeeProfileResponse,
    summary="Get merchant fee profile",
    responses={
        401: {"description": "Staff access required"},
        404: {"description": "Merchant or fee profile not found"},
    },
)
async def get_fee_profile(
    merchant_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> MerchantFeeProfile:
    repo = MerchantRepository(db)
    _get_merchant(repo, merchant_id)
    profile = repo.get_fee_profile(merchant_id)
    if profile is None:
        raise NotFoundError("Fee profile not found for this merchant")
    return profile


@router.put(
    "/{merchant_id}/fee_profile",
    response_model=FeeProfileResponse,
    summary="Set merchant fee profile",
    responses={
        401: {"description": "Staff access required"},
        404: {"description": "Merchant not found"},
    },
)
async def set_fee_profile(
    merchant_id: UUID,
    data: FeeProfileUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_staff),
) -> MerchantFeeProfile:
    """Create the merchant's fee profile, or overwrite the given rates.

    Payments quoted after this call use the new rates.
    """
    repo = MerchantRepository(db)
    _get_merchant(repo, merchant_id)
    updates = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FEE_FIELDS
    }
    profile = repo.get_fee_profile(merchant_id)
    if profile is None:
        return repo.create_fee_profile(merchant_id, **updates)
    return repo.update_fee_profile(profile, updates)
