"""Payment attempt repository for data access."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateIdempotencyKeyError
from app.models.payment_attempt import EntityKind, PaymentAttempt, PaymentAttemptStatus


class PaymentAttemptRepository:
    """Repository for PaymentAttempt model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        user_id: UUID | None = None,
        entity_kind: EntityKind | None = None,
        status: PaymentAttemptStatus | None = None,
    ) -> list[PaymentAttempt]:
        """Get payment attempts with optional filters, newest first."""
        query = self.db.query(PaymentAttempt)

        if user_id is not None:
            query = query.filter(PaymentAttempt.user_id == user_id)
        if entity_kind:
            query = query.filter(PaymentAttempt.entity_kind == entity_kind.value)
        if status:
            query = query.filter(PaymentAttempt.status == status.value)

        return query.order_by(PaymentAttempt.created_at.desc()).offset(skip).limit(limit).all()

    def get_by_id(self, attempt_id: UUID, user_id: UUID | None = None) -> PaymentAttempt | None:
        query = self.db.query(PaymentAttempt).filter(PaymentAttempt.id == attempt_id)
        if user_id is not None:
            query = query.filter(PaymentAttempt.user_id == user_id)
        return query.first()

    def get_by_idempotency_key(self, idempotency_key: str) -> PaymentAttempt | None:
        return (
            self.db.query(PaymentAttempt)
            .filter(PaymentAttempt.idempotency_key == idempotency_key)
            .first()
        )

    def get_by_transfer_id(self, transfer_id: str) -> PaymentAttempt | None:
        return (
            self.db.query(PaymentAttempt).filter(PaymentAttempt.transfer_id == transfer_id).first()
        )

    def get_pending_for_entity(
        self, entity_kind: EntityKind, entity_id: UUID
    ) -> PaymentAttempt | None:
        return (
            self.db.query(PaymentAttempt)
            .filter(
                PaymentAttempt.entity_kind == entity_kind.value,
                PaymentAttempt.entity_id == entity_id,
                PaymentAttempt.status == PaymentAttemptStatus.PENDING.value,
            )
            .first()
        )

    def get_stale_pending(self, older_than: datetime) -> list[PaymentAttempt]:
        """Pending attempts created before ``older_than``."""
        return (
            self.db.query(PaymentAttempt)
            .filter(
                PaymentAttempt.status == PaymentAttemptStatus.PENDING.value,
                PaymentAttempt.created_at < older_than,
            )
            .order_by(PaymentAttempt.created_at.asc())
            .all()
        )

    def create_pending(
        self,
        *,
        user_id: UUID,
        entity_kind: EntityKind,
        entity_id: UUID,
        base_amount_cents: int,
        service_fee_cents: int,
        total_amount_cents: int,
        currency: str,
        payment_instrument_id: UUID,
        idempotency_key: str,
        merchant_id: UUID | None = None,
        finix_merchant_id: str | None = None,
        fraud_session_id: str | None = None,
    ) -> PaymentAttempt:
        """Persist a new pending attempt.

        Raises DuplicateIdempotencyKeyError when another attempt already holds
        the key; the session is rolled back first.
        """
        attempt = PaymentAttempt(
            user_id=user_id,
            entity_kind=entity_kind.value,
            entity_id=entity_id,
            base_amount_cents=base_amount_cents,
            service_fee_cents=service_fee_cents,
            total_amount_cents=total_amount_cents,
            currency=currency,
            payment_instrument_id=payment_instrument_id,
            idempotency_key=idempotency_key,
            merchant_id=merchant_id,
            finix_merchant_id=finix_merchant_id,
            fraud_session_id=fraud_session_id,
            status=PaymentAttemptStatus.PENDING.value,
        )
        self.db.add(attempt)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateIdempotencyKeyError(idempotency_key) from None
        self.db.refresh(attempt)
        return attempt

    def set_transfer_id(self, attempt: PaymentAttempt, transfer_id: str) -> PaymentAttempt:
        attempt.transfer_id = transfer_id  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(attempt)
        return attempt

    def mark_succeeded(
        self, attempt: PaymentAttempt, transfer_id: str | None = None
    ) -> PaymentAttempt:
        """Mark an attempt as succeeded.

        Commits every pending change in the session, so an entity transition
        applied beforehand lands in the same transaction.
        """
        attempt.status = PaymentAttemptStatus.SUCCEEDED.value  # type: ignore[assignment]
        if transfer_id:
            attempt.transfer_id = transfer_id  # type: ignore[assignment]
        attempt.completed_at = datetime.now(UTC)  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(attempt)
        return attempt

    def mark_failed(
        self,
        attempt: PaymentAttempt,
        failure_code: str | None = None,
        failure_message: str | None = None,
        transfer_id: str | None = None,
    ) -> PaymentAttempt:
        """Mark an attempt as failed."""
        attempt.status = PaymentAttemptStatus.FAILED.value  # type: ignore[assignment]
        attempt.failure_code = failure_code  # type: ignore[assignment]
        attempt.failure_message = failure_message  # type: ignore[assignment]
        if transfer_id:
            attempt.transfer_id = transfer_id  # type: ignore[assignment]
        attempt.completed_at = datetime.now(UTC)  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(attempt)
        return attempt
