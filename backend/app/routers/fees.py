"""Fee quote API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.core.exceptions import AuthorizationError, ValidationFailedError
from app.repositories.payment_instrument_repository import PaymentInstrumentRepository
from app.schemas.fee import FeeQuoteRequest, FeeQuoteResponse
from app.services.fee_models.calculator import InstrumentClass
from app.services.fee_models.factory import FeeMode
from app.services.payable_entities import get_payable_entity
from app.services.payment_service import quote_fee

router = APIRouter()


@router.post(
    "/quote",
    response_model=FeeQuoteResponse,
    summary="Quote a service fee",
    responses={
        400: {"description": "Invalid amount"},
        401: {"description": "Unauthorized – invalid or missing token"},
        404: {"description": "Merchant not found"},
    },
)
async def quote(
    data: FeeQuoteRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> FeeQuoteResponse:
    """Compute the exact total a payment must later claim."""
    fee_mode = FeeMode.ADDITIVE
    if data.entity_kind is not None:
        fee_mode = get_payable_entity(data.entity_kind).fee_mode

    instrument_class = data.instrument_class or InstrumentClass.CARD
    if data.payment_instrument_id is not None:
        instrument = PaymentInstrumentRepository(db).get_for_user(
            data.payment_instrument_id, user.id
        )
        if instrument is None:
            raise AuthorizationError("Payment instrument not found or not owned by user")
        instrument_class = InstrumentClass.from_instrument_type(str(instrument.instrument_type))

    try:
        result = quote_fee(
            db, data.base_amount_cents, instrument_class, fee_mode, data.merchant_id
        )
    except ValueError as exc:
        raise ValidationFailedError(str(exc)) from None

    return FeeQuoteResponse(
        base_amount_cents=result.base_amount_cents,
        service_fee_cents=result.fee_cents,
        total_amount_cents=result.total_amount_cents,
        is_card=result.instrument_class == InstrumentClass.CARD,
        basis_points=result.basis_points,
        fixed_fee_cents=result.fixed_fee_cents,
        fee_mode=result.mode,
    )
