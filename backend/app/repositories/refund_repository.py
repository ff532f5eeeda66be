"""Refund repository for data access."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.refund import Refund, RefundStatus


class RefundRepository:
    """Repository for Refund model."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, refund_id: UUID) -> Refund | None:
        return self.db.query(Refund).filter(Refund.id == refund_id).first()

    def get_by_reversal_id(self, reversal_id: str) -> Refund | None:
        return self.db.query(Refund).filter(Refund.reversal_id == reversal_id).first()

    def get_for_attempt(self, payment_attempt_id: UUID) -> list[Refund]:
        return (
            self.db.query(Refund)
            .filter(Refund.payment_attempt_id == payment_attempt_id)
            .order_by(Refund.created_at.desc())
            .all()
        )

    def get_active_for_attempt(self, payment_attempt_id: UUID) -> Refund | None:
        """The pending or succeeded refund of an attempt, if any."""
        return (
            self.db.query(Refund)
            .filter(
                Refund.payment_attempt_id == payment_attempt_id,
                Refund.status != RefundStatus.FAILED.value,
            )
            .first()
        )

    def create_pending(
        self,
        *,
        payment_attempt_id: UUID,
        requested_by: UUID,
        reason: str,
        amount_cents: int,
        original_amount_cents: int,
        currency: str,
        transfer_id: str,
    ) -> Refund:
        refund = Refund(
            payment_attempt_id=payment_attempt_id,
            requested_by=requested_by,
            reason=reason,
            amount_cents=amount_cents,
            original_amount_cents=original_amount_cents,
            currency=currency,
            transfer_id=transfer_id,
            status=RefundStatus.PENDING.value,
        )
        self.db.add(refund)
        self.db.commit()
        self.db.refresh(refund)
        return refund

    def set_outcome(
        self,
        refund: Refund,
        status: RefundStatus,
        reversal_id: str | None = None,
        failure_code: str | None = None,
        failure_message: str | None = None,
    ) -> Refund:
        refund.status = status.value  # type: ignore[assignment]
        if reversal_id:
            refund.reversal_id = reversal_id  # type: ignore[assignment]
        refund.failure_code = failure_code  # type: ignore[assignment]
        refund.failure_message = failure_message  # type: ignore[assignment]
        if status != RefundStatus.PENDING:
            refund.completed_at = datetime.now(UTC)  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(refund)
        return refund
