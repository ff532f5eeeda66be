"""Payment orchestration for resident payments.

``PaymentOrchestrator.process_payment`` runs every payment through the same
sequence: idempotency replay, ownership checks, payable-state check, server
side fee verification, a pending attempt row, the gateway transfer and
finally the outcome. The attempt row is committed before the gateway is
called so an interrupted request always leaves a record behind.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AmountMismatchError,
    AuthorizationError,
    DuplicateIdempotencyKeyError,
    GatewayError,
    InvalidStateError,
    NotFoundError,
)
from app.models.domain_record import PaymentStatus
from app.models.merchant import Merchant
from app.models.payment_attempt import EntityKind, PaymentAttempt, PaymentAttemptStatus
from app.repositories.domain_record_repository import DomainRecordRepository
from app.repositories.merchant_repository import MerchantRepository
from app.repositories.payment_attempt_repository import PaymentAttemptRepository
from app.repositories.payment_instrument_repository import PaymentInstrumentRepository
from app.services.fee_models.calculator import (
    FeeQuote,
    FeeSchedule,
    InstrumentClass,
    compute_fee,
)
from app.services.fee_models.factory import FeeMode
from app.services.payable_entities import PayableEntity, get_payable_entity
from app.services.payment_gateway import PaymentGatewayBase, TransferResult, get_payment_gateway

logger = logging.getLogger(__name__)

GATEWAY_UNREACHABLE = "GATEWAY_UNREACHABLE"
GATEWAY_ERROR = "GATEWAY_ERROR"


@dataclass
class PaymentResult:
    success: bool
    payment_attempt_id: UUID
    entity_kind: str
    entity_id: UUID
    status: str
    transfer_id: str | None
    base_amount_cents: int
    service_fee_cents: int
    total_amount_cents: int
    failure_code: str | None = None
    failure_message: str | None = None
    replayed: bool = False

    @classmethod
    def from_attempt(cls, attempt: PaymentAttempt, replayed: bool = False) -> "PaymentResult":
        return cls(
            success=attempt.status != PaymentAttemptStatus.FAILED.value,
            payment_attempt_id=attempt.id,  # type: ignore[arg-type]
            entity_kind=str(attempt.entity_kind),
            entity_id=attempt.entity_id,  # type: ignore[arg-type]
            status=str(attempt.status),
            transfer_id=attempt.transfer_id,  # type: ignore[arg-type]
            base_amount_cents=int(attempt.base_amount_cents),
            service_fee_cents=int(attempt.service_fee_cents),
            total_amount_cents=int(attempt.total_amount_cents),
            failure_code=attempt.failure_code,  # type: ignore[arg-type]
            failure_message=attempt.failure_message,  # type: ignore[arg-type]
            replayed=replayed,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("replayed")
        return data


def fee_schedule_for_merchant(db: Session, merchant: Merchant | None) -> FeeSchedule:
    if merchant is None:
        return FeeSchedule.default()
    profile = MerchantRepository(db).get_fee_profile(merchant.id)  # type: ignore[arg-type]
    return FeeSchedule.from_profile(profile)


def _gateway_error_for(attempt: PaymentAttempt) -> GatewayError:
    return GatewayError(
        str(attempt.failure_message or "Payment failed"),
        failure_code=attempt.failure_code,  # type: ignore[arg-type]
        payment_attempt_id=attempt.id,  # type: ignore[arg-type]
    )


class PaymentOrchestrator:
    def __init__(self, db: Session, gateway: PaymentGatewayBase | None = None):
        self.db = db
        self.gateway = gateway or get_payment_gateway()
        self.attempt_repo = PaymentAttemptRepository(db)
        self.instrument_repo = PaymentInstrumentRepository(db)
        self.merchant_repo = MerchantRepository(db)

    def _replay(self, attempt: PaymentAttempt, caller_id: UUID) -> PaymentResult:
        if attempt.user_id != caller_id:
            raise AuthorizationError("Idempotency key belongs to another user")
        logger.info(
            "Replaying payment attempt %s for idempotency key %s",
            attempt.id,
            attempt.idempotency_key,
        )
        if attempt.status == PaymentAttemptStatus.FAILED.value:
            raise _gateway_error_for(attempt)
        return PaymentResult.from_attempt(attempt, replayed=True)

    def quote(
        self,
        definition: PayableEntity,
        record: Any,
        instrument_class: InstrumentClass,
        merchant: Merchant | None,
    ) -> FeeQuote:
        schedule = fee_schedule_for_merchant(self.db, merchant)
        return compute_fee(
            int(record.base_amount_cents), schedule, instrument_class, definition.fee_mode
        )

    def process_payment(
        self,
        entity_kind: EntityKind | str,
        entity_id: UUID,
        instrument_id: UUID,
        claimed_total_cents: int,
        idempotency_key: str,
        caller_id: UUID,
        fraud_session_id: str | None = None,
    ) -> PaymentResult:
        """Charge the caller for a domain record.

        Raises NotFoundError, AuthorizationError, InvalidStateError,
        AmountMismatchError or GatewayError. A retried idempotency key returns
        the stored outcome without calling the gateway again.
        """
        existing = self.attempt_repo.get_by_idempotency_key(idempotency_key)
        if existing is not None:
            return self._replay(existing, caller_id)

        definition = get_payable_entity(entity_kind)
        record = DomainRecordRepository(self.db, definition.model).get_by_id(entity_id)
        if record is None:
            raise NotFoundError(f"{definition.label} not found")
        if record.user_id != caller_id:
            raise AuthorizationError(f"Not authorized to pay for this {definition.label.lower()}")

        instrument = self.instrument_repo.get_for_user(instrument_id, caller_id)
        if instrument is None:
            raise AuthorizationError("Payment instrument not found or not owned by user")
        if not instrument.enabled:
            raise AuthorizationError("Payment instrument is disabled")

        if record.payment_status == PaymentStatus.PAID.value:
            raise InvalidStateError(f"{definition.label} has already been paid")
        if not definition.is_payable(record):
            raise InvalidStateError(
                f"{definition.label} is not ready for payment. Current status: {record.status}"
            )
        in_flight = self.attempt_repo.get_pending_for_entity(definition.kind, entity_id)
        if in_flight is not None:
            if in_flight.idempotency_key == idempotency_key:
                return self._replay(in_flight, caller_id)
            raise InvalidStateError(
                f"A payment for this {definition.label.lower()} is already awaiting settlement"
            )

        merchant = (
            self.merchant_repo.get_by_id(record.merchant_id) if record.merchant_id else None
        )
        if merchant is None or not merchant.finix_merchant_id:
            raise InvalidStateError("Merchant not configured for payment processing")

        instrument_class = InstrumentClass.from_instrument_type(str(instrument.instrument_type))
        quote = self.quote(definition, record, instrument_class, merchant)
        difference = abs(quote.total_amount_cents - claimed_total_cents)
        if difference > settings.payment_amount_tolerance_cents:
            logger.warning(
                "Amount mismatch for %s %s: expected %s, received %s",
                definition.kind.value,
                entity_id,
                quote.total_amount_cents,
                claimed_total_cents,
            )
            raise AmountMismatchError(quote.total_amount_cents, claimed_total_cents)

        try:
            attempt = self.attempt_repo.create_pending(
                user_id=caller_id,
                entity_kind=definition.kind,
                entity_id=entity_id,
                base_amount_cents=quote.base_amount_cents,
                service_fee_cents=quote.fee_cents,
                total_amount_cents=quote.total_amount_cents,
                currency=settings.currency,
                payment_instrument_id=instrument_id,
                idempotency_key=idempotency_key,
                merchant_id=merchant.id,  # type: ignore[arg-type]
                finix_merchant_id=merchant.finix_merchant_id,  # type: ignore[arg-type]
                fraud_session_id=fraud_session_id,
            )
        except DuplicateIdempotencyKeyError:
            winner = self.attempt_repo.get_by_idempotency_key(idempotency_key)
            if winner is None:
                raise
            return self._replay(winner, caller_id)

        logger.info(
            "Payment attempt %s pending for %s %s (total %s)",
            attempt.id,
            definition.kind.value,
            entity_id,
            quote.total_amount_cents,
        )

        try:
            transfer = self.gateway.create_transfer(
                merchant_id=str(merchant.finix_merchant_id),
                source_instrument_id=str(instrument.finix_payment_instrument_id),
                amount_cents=quote.total_amount_cents,
                currency=settings.currency,
                idempotency_key=idempotency_key,
                fraud_session_id=fraud_session_id,
                tags={"entity_kind": definition.kind.value, "entity_id": str(entity_id)},
            )
        except httpx.HTTPError as exc:
            logger.warning("Payment gateway unreachable for attempt %s: %s", attempt.id, exc)
            self.attempt_repo.mark_failed(
                attempt,
                failure_code=GATEWAY_UNREACHABLE,
                failure_message="Payment gateway unreachable",
            )
            raise _gateway_error_for(attempt) from exc
        except Exception as exc:
            logger.exception("Unexpected gateway error for attempt %s", attempt.id)
            self.db.rollback()
            self.attempt_repo.mark_failed(
                attempt,
                failure_code=GATEWAY_ERROR,
                failure_message="Unexpected payment gateway error",
            )
            raise _gateway_error_for(attempt) from exc

        self.apply_transfer_outcome(attempt, transfer, record=record, definition=definition)
        if attempt.status == PaymentAttemptStatus.FAILED.value:
            raise _gateway_error_for(attempt)
        return PaymentResult.from_attempt(attempt)

    def apply_transfer_outcome(
        self,
        attempt: PaymentAttempt,
        transfer: TransferResult,
        record: Any | None = None,
        definition: PayableEntity | None = None,
    ) -> bool:
        """Move a pending attempt to the state the gateway reported.

        Returns True when the attempt changed. Attempts that already reached a
        terminal state are left alone, so the record transition happens once.
        """
        if attempt.status != PaymentAttemptStatus.PENDING.value:
            return False

        if transfer.succeeded:
            definition = definition or get_payable_entity(str(attempt.entity_kind))
            if record is None:
                record = DomainRecordRepository(self.db, definition.model).get_by_id(
                    attempt.entity_id  # type: ignore[arg-type]
                )
            if record is not None and record.payment_status != PaymentStatus.PAID.value:
                definition.apply_payment(
                    record,
                    service_fee_cents=int(attempt.service_fee_cents),
                    total_amount_cents=int(attempt.total_amount_cents),
                    payment_reference=transfer.transfer_id,
                    paid_at=datetime.now(UTC),
                )
            self.attempt_repo.mark_succeeded(attempt, transfer.transfer_id)
            logger.info(
                "Payment attempt %s succeeded (transfer %s)", attempt.id, transfer.transfer_id
            )
            return True

        if transfer.pending:
            if transfer.transfer_id and attempt.transfer_id != transfer.transfer_id:
                self.attempt_repo.set_transfer_id(attempt, transfer.transfer_id)
                logger.info(
                    "Payment attempt %s awaiting settlement (transfer %s)",
                    attempt.id,
                    transfer.transfer_id,
                )
                return True
            return False

        self.attempt_repo.mark_failed(
            attempt,
            failure_code=transfer.failure_code,
            failure_message=transfer.failure_message or "Payment failed",
            transfer_id=transfer.transfer_id,
        )
        logger.warning(
            "Payment attempt %s failed: %s %s",
            attempt.id,
            transfer.failure_code,
            transfer.failure_message,
        )
        return True


def quote_fee(
    db: Session,
    base_amount_cents: int,
    instrument_class: InstrumentClass,
    fee_mode: FeeMode,
    merchant_id: UUID | None = None,
) -> FeeQuote:
    merchant = MerchantRepository(db).get_by_id(merchant_id) if merchant_id else None
    if merchant_id and merchant is None:
        raise NotFoundError("Merchant not found")
    schedule = fee_schedule_for_merchant(db, merchant)
    return compute_fee(base_amount_cents, schedule, instrument_class, fee_mode)


RECONCILIATION_TIMEOUT = "RECONCILIATION_TIMEOUT"


def reconcile_pending_attempts(
    db: Session,
    gateway: PaymentGatewayBase | None = None,
    now: datetime | None = None,
) -> int:
    """Settle pending attempts older than the reconciliation window.

    Attempts that never received a transfer id are failed; the rest are
    re-fetched from the gateway and their reported outcome applied.
    Returns the number of attempts that changed.
    """
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(minutes=settings.payment_reconciliation_after_minutes)
    orchestrator = PaymentOrchestrator(db, gateway=gateway)
    changed = 0

    for attempt in orchestrator.attempt_repo.get_stale_pending(cutoff):
        if not attempt.transfer_id:
            orchestrator.attempt_repo.mark_failed(
                attempt,
                failure_code=RECONCILIATION_TIMEOUT,
                failure_message="No gateway outcome recorded before the reconciliation deadline",
            )
            logger.warning("Payment attempt %s failed by reconciliation timeout", attempt.id)
            changed += 1
            continue

        try:
            transfer = orchestrator.gateway.fetch_transfer(str(attempt.transfer_id))
        except httpx.HTTPError as exc:
            logger.warning(
                "Could not fetch transfer %s for attempt %s: %s",
                attempt.transfer_id,
                attempt.id,
                exc,
            )
            continue
        if orchestrator.apply_transfer_outcome(attempt, transfer):
            changed += 1

    return changed
