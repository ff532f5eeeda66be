"""Saved payment instrument API endpoints."""

import logging
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.exceptions import GatewayError, NotFoundError
from app.models.payment_instrument import PaymentInstrument
from app.repositories.merchant_repository import MerchantRepository
from app.repositories.payment_instrument_repository import PaymentInstrumentRepository
from app.schemas.payment_instrument import (
    PaymentInstrumentCreate,
    PaymentInstrumentResponse,
    WalletInstrumentCreate,
)
from app.services.payment_gateway import get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/",
    response_model=list[PaymentInstrumentResponse],
    summary="List payment instruments",
    responses={401: {"description": "Unauthorized – invalid or missing token"}},
)
async def list_payment_instruments(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> list[PaymentInstrument]:
    """List the caller's enabled payment instruments."""
    return PaymentInstrumentRepository(db).get_all_for_user(user.id)


@router.post(
    "/",
    response_model=PaymentInstrumentResponse,
    status_code=201,
    summary="Register payment instrument",
    responses={401: {"description": "Unauthorized – invalid or missing token"}},
)
async def create_payment_instrument(
    data: PaymentInstrumentCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentInstrument:
    """Store a card or bank account that the gateway has already tokenized."""
    fields = data.model_dump()
    fields["instrument_type"] = data.instrument_type.value
    return PaymentInstrumentRepository(db).create(user.id, **fields)


@router.post(
    "/wallet",
    response_model=PaymentInstrumentResponse,
    status_code=201,
    summary="Tokenize wallet payment",
    responses={
        401: {"description": "Unauthorized – invalid or missing token"},
        404: {"description": "Merchant not found"},
        500: {"description": "Payment gateway failure"},
    },
)
async def create_wallet_instrument(
    data: WalletInstrumentCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> PaymentInstrument:
    """Exchange a Google Pay or Apple Pay token for a gateway instrument."""
    merchant_identity_id = None
    if data.merchant_id is not None:
        merchant = MerchantRepository(db).get_by_id(data.merchant_id)
        if merchant is None:
            raise NotFoundError("Merchant not found")
        merchant_identity_id = merchant.finix_identity_id

    gateway = get_payment_gateway()
    try:
        result = gateway.create_payment_instrument(
            identity_id=data.identity_id,
            wallet_type=data.wallet_type.value,
            third_party_token=data.third_party_token,
            merchant_identity_id=merchant_identity_id,  # type: ignore[arg-type]
        )
    except httpx.HTTPError as exc:
        logger.warning("Wallet tokenization failed for user %s: %s", user.id, exc)
        raise GatewayError("Failed to tokenize wallet payment") from exc

    return PaymentInstrumentRepository(db).create(
        user.id,
        finix_payment_instrument_id=result.instrument_id,
        instrument_type=result.instrument_type,
        wallet_type=data.wallet_type.value,
        nickname=data.nickname,
        card_brand=result.card_brand,
        card_last_four=result.last_four,
        card_expiration_month=result.expiration_month,
        card_expiration_year=result.expiration_year,
    )


@router.delete(
    "/{instrument_id}",
    status_code=204,
    summary="Disable payment instrument",
    responses={
        401: {"description": "Unauthorized – invalid or missing token"},
        404: {"description": "Payment instrument not found"},
    },
)
async def delete_payment_instrument(
    instrument_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    repo = PaymentInstrumentRepository(db)
    instrument = repo.get_for_user(instrument_id, user.id)
    if instrument is None:
        raise NotFoundError("Payment instrument not found")
    repo.disable(instrument)
    return Response(status_code=204)
