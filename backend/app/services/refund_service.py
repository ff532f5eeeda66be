"""Refund service for reversing succeeded payments through the gateway."""

import logging
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from app.core.exceptions import (
    GatewayError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from app.models.payment_attempt import PaymentAttemptStatus
from app.models.refund import Refund, RefundStatus
from app.repositories.payment_attempt_repository import PaymentAttemptRepository
from app.repositories.refund_repository import RefundRepository
from app.services.payment_gateway import PaymentGatewayBase, TransferResult, get_payment_gateway

logger = logging.getLogger(__name__)

REFUND_GATEWAY_ERROR = "REFUND_GATEWAY_ERROR"


def refund_status_for(transfer: TransferResult) -> RefundStatus:
    if transfer.succeeded:
        return RefundStatus.SUCCEEDED
    if transfer.pending:
        return RefundStatus.PENDING
    return RefundStatus.FAILED


class RefundService:
    """Service for processing refunds of portal payments."""

    def __init__(self, db: Session, gateway: PaymentGatewayBase | None = None):
        self.db = db
        self.gateway = gateway or get_payment_gateway()
        self.attempt_repo = PaymentAttemptRepository(db)
        self.refund_repo = RefundRepository(db)

    def refund_payment(
        self,
        attempt_id: UUID,
        requested_by: UUID,
        reason: str,
        amount_cents: int | None = None,
    ) -> Refund:
        """Reverse all or part of a succeeded payment attempt.

        The domain record keeps its paid status; the refund is tracked on its
        own row. Raises NotFoundError, InvalidStateError,
        ValidationFailedError or GatewayError.
        """
        attempt = self.attempt_repo.get_by_id(attempt_id)
        if attempt is None:
            raise NotFoundError("Payment attempt not found")
        if attempt.status != PaymentAttemptStatus.SUCCEEDED.value or not attempt.transfer_id:
            raise InvalidStateError("Only succeeded payments can be refunded")
        if self.refund_repo.get_active_for_attempt(attempt_id) is not None:
            raise InvalidStateError("Refund already exists for this payment")

        total = int(attempt.total_amount_cents)
        amount = total if amount_cents is None else amount_cents
        if amount <= 0 or amount > total:
            raise ValidationFailedError(f"Refund amount must be between 1 and {total} cents")

        refund = self.refund_repo.create_pending(
            payment_attempt_id=attempt_id,
            requested_by=requested_by,
            reason=reason,
            amount_cents=amount,
            original_amount_cents=total,
            currency=str(attempt.currency),
            transfer_id=str(attempt.transfer_id),
        )

        try:
            transfer = self.gateway.create_reversal(
                transfer_id=str(attempt.transfer_id),
                amount_cents=amount,
                tags={"payment_attempt_id": str(attempt_id), "refund_id": str(refund.id)},
            )
        except Exception as exc:
            logger.warning("Refund %s could not reach the gateway: %s", refund.id, exc)
            self.db.rollback()
            self.refund_repo.set_outcome(
                refund,
                RefundStatus.FAILED,
                failure_code=REFUND_GATEWAY_ERROR,
                failure_message="Payment gateway error",
            )
            message = (
                "Payment gateway unreachable"
                if isinstance(exc, httpx.HTTPError)
                else "Unexpected payment gateway error"
            )
            raise GatewayError(message, failure_code=REFUND_GATEWAY_ERROR) from exc

        status = refund_status_for(transfer)
        self.refund_repo.set_outcome(
            refund,
            status,
            reversal_id=transfer.transfer_id,
            failure_code=transfer.failure_code if status == RefundStatus.FAILED else None,
            failure_message=transfer.failure_message if status == RefundStatus.FAILED else None,
        )
        if status == RefundStatus.FAILED:
            logger.warning(
                "Refund %s of attempt %s failed: %s", refund.id, attempt_id, transfer.failure_code
            )
            raise GatewayError(
                str(transfer.failure_message or "Refund failed"),
                failure_code=transfer.failure_code,
                payment_attempt_id=attempt_id,
            )

        logger.info(
            "Refund %s of attempt %s for %s cents is %s",
            refund.id,
            attempt_id,
            amount,
            status.value,
        )
        return refund

    def apply_reversal_outcome(self, refund: Refund, transfer: TransferResult) -> bool:
        """Settle a pending refund from a gateway event. Returns True when it changed."""
        if refund.status != RefundStatus.PENDING.value:
            return False
        status = refund_status_for(transfer)
        if status == RefundStatus.PENDING:
            return False
        self.refund_repo.set_outcome(
            refund,
            status,
            failure_code=transfer.failure_code if status == RefundStatus.FAILED else None,
            failure_message=transfer.failure_message if status == RefundStatus.FAILED else None,
        )
        logger.info("Refund %s settled as %s", refund.id, status.value)
        return True
