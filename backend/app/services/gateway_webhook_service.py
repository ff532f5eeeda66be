"""Ingestion of asynchronous payment gateway events.

Merchant events patch onboarding and processing state. Transfer events settle
pending payment attempts or refunds, dispute events are upserted, instrument
events refresh card expiry and identity events are recorded on the merchant.
Field writes are last-write-wins overwrites, so reprocessing an event is safe.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.gateway_webhook_event import WebhookEventStatus
from app.models.merchant import Merchant, ProcessingStatus, VerificationStatus
from app.repositories.gateway_dispute_repository import GatewayDisputeRepository
from app.repositories.gateway_webhook_event_repository import GatewayWebhookEventRepository
from app.repositories.merchant_repository import MerchantRepository
from app.repositories.payment_attempt_repository import PaymentAttemptRepository
from app.repositories.payment_instrument_repository import PaymentInstrumentRepository
from app.repositories.refund_repository import RefundRepository
from app.services.payment_gateway import (
    GatewayEvent,
    PaymentGatewayBase,
    TransferResult,
    get_payment_gateway,
    parse_event,
)
from app.services.payment_service import PaymentOrchestrator
from app.services.refund_service import RefundService

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-finix-signature"

ONBOARDING_STATE_MAP: dict[str, tuple[VerificationStatus, ProcessingStatus]] = {
    "PROVISIONING": (VerificationStatus.PENDING, ProcessingStatus.PENDING),
    "APPROVED": (VerificationStatus.APPROVED, ProcessingStatus.MERCHANT_CREATED),
    "ENABLED": (VerificationStatus.APPROVED, ProcessingStatus.PROCESSING_ENABLED),
    "REJECTED": (VerificationStatus.REJECTED, ProcessingStatus.REJECTED),
    "DISABLED": (VerificationStatus.APPROVED, ProcessingStatus.DISABLED),
}


@dataclass
class IngestResult:
    status_code: int
    body: str


OK = IngestResult(200, "OK")


def map_onboarding_state(state: str | None) -> tuple[VerificationStatus, ProcessingStatus]:
    """Map a gateway onboarding state onto local verification/processing status."""
    mapped = ONBOARDING_STATE_MAP.get((state or "").upper())
    if mapped is None:
        logger.warning("Unknown merchant onboarding state %r, defaulting to pending", state)
        return VerificationStatus.PENDING, ProcessingStatus.PENDING
    return mapped


def merchant_updates_for(event: GatewayEvent) -> dict[str, Any]:
    """Fields of a merchant touched by ``event``.

    The status pair is only rewritten when the event carries an onboarding
    state; flag-only updates leave the existing statuses alone.
    """
    obj = event.object
    if event.action == "processing_updated":
        return {"processing_enabled": bool(obj.get("processing_enabled", False))}
    if event.action == "settlement_updated":
        return {"settlement_enabled": bool(obj.get("settlement_enabled", False))}

    state = obj.get("onboarding_state")
    if event.action == "underwritten" and not state:
        state = "APPROVED"
    updates: dict[str, Any] = {}
    if state:
        verification, processing = map_onboarding_state(state)
        updates.update(
            verification_status=verification.value,
            processing_status=processing.value,
            onboarding_state=state,
        )
    for flag in ("processing_enabled", "settlement_enabled"):
        if flag in obj:
            updates[flag] = bool(obj[flag])
    return updates


class GatewayWebhookService:
    def __init__(self, db: Session, gateway: PaymentGatewayBase | None = None):
        self.db = db
        self.gateway = gateway or get_payment_gateway()
        self.merchant_repo = MerchantRepository(db)
        self.event_repo = GatewayWebhookEventRepository(db)

    def ingest(self, raw_body: bytes, headers: Mapping[str, str]) -> IngestResult:
        """Verify, parse and apply one webhook delivery."""
        signature = headers.get(SIGNATURE_HEADER)
        if not self.gateway.verify_webhook_signature(raw_body, signature):
            logger.warning("Rejected gateway webhook with missing or invalid signature")
            return IngestResult(401, "Unauthorized")

        try:
            payload = json.loads(raw_body)
            if not isinstance(payload, dict):
                raise ValueError("Event body is not an object")
            event = parse_event(payload)
        except ValueError as exc:
            logger.warning("Ignoring malformed gateway webhook: %s", exc)
            return OK

        logger.info("Received gateway webhook %s (%s)", event.event_id, event.event_type)

        try:
            status, note = self._dispatch(event)
            self.event_repo.record(
                event_type=event.event_type,
                event_id=event.event_id,
                entity=event.entity,
                entity_id=event.object.get("id"),
                payload=payload,
                status=status,
                note=note,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to persist gateway webhook %s", event.event_id)
            return IngestResult(500, "Internal Server Error")

        return OK

    def _dispatch(self, event: GatewayEvent) -> tuple[WebhookEventStatus, str | None]:
        if event.entity == "merchant":
            return self._handle_merchant(event)
        if event.entity == "transfer":
            return self._handle_transfer(event)
        if event.entity == "identity":
            return self._handle_identity(event)
        if event.entity == "dispute":
            return self._handle_dispute(event)
        if event.entity in ("instrument", "payment_instrument"):
            return self._handle_instrument(event)
        return WebhookEventStatus.IGNORED, f"Unhandled entity {event.entity}"

    def _record_latest(self, merchant: Merchant, key: str, summary: dict[str, Any]) -> None:
        metadata = dict(merchant.gateway_metadata or {})
        metadata[key] = {**summary, "received_at": datetime.now(UTC).isoformat()}
        merchant.gateway_metadata = metadata  # type: ignore[assignment]

    def _handle_merchant(self, event: GatewayEvent) -> tuple[WebhookEventStatus, str | None]:
        finix_merchant_id = event.object.get("id") or event.object.get("merchant")
        merchant = (
            self.merchant_repo.get_by_finix_merchant_id(finix_merchant_id)
            if finix_merchant_id
            else None
        )
        if merchant is None:
            logger.warning("No local merchant for gateway merchant %s", finix_merchant_id)
            return WebhookEventStatus.IGNORED, "Merchant not found"

        updates = merchant_updates_for(event)
        for key, value in updates.items():
            setattr(merchant, key, value)
        self._record_latest(
            merchant, "latest_webhook", {"event_type": event.event_type, **updates}
        )
        logger.info("Updated merchant %s from %s: %s", merchant.id, event.event_type, updates)
        return WebhookEventStatus.PROCESSED, None

    def _handle_transfer(self, event: GatewayEvent) -> tuple[WebhookEventStatus, str | None]:
        transfer_id = event.object.get("id")
        attempt = (
            PaymentAttemptRepository(self.db).get_by_transfer_id(transfer_id)
            if transfer_id
            else None
        )
        transfer = TransferResult(
            state=str(event.object.get("state") or "").upper(),
            transfer_id=transfer_id,
            amount=event.object.get("amount"),
            currency=event.object.get("currency"),
            failure_code=event.object.get("failure_code"),
            failure_message=event.object.get("failure_message"),
            raw=event.object,
        )
        if attempt is None:
            refund = (
                RefundRepository(self.db).get_by_reversal_id(transfer_id) if transfer_id else None
            )
            if refund is not None:
                refund_service = RefundService(self.db, gateway=self.gateway)
                if not refund_service.apply_reversal_outcome(refund, transfer):
                    return WebhookEventStatus.IGNORED, f"Refund already {refund.status}"
                return WebhookEventStatus.PROCESSED, None
            logger.warning("No payment attempt for transfer %s", transfer_id)
            return WebhookEventStatus.IGNORED, "Payment attempt not found"

        changed = PaymentOrchestrator(self.db, gateway=self.gateway).apply_transfer_outcome(
            attempt, transfer
        )
        if not changed:
            return WebhookEventStatus.IGNORED, f"Attempt already {attempt.status}"
        return WebhookEventStatus.PROCESSED, None

    def _handle_identity(self, event: GatewayEvent) -> tuple[WebhookEventStatus, str | None]:
        identity_id = event.object.get("id")
        merchant = (
            self.merchant_repo.get_by_finix_identity_id(identity_id) if identity_id else None
        )
        if merchant is None:
            logger.warning("No local merchant for gateway identity %s", identity_id)
            return WebhookEventStatus.IGNORED, "Merchant not found"

        self._record_latest(merchant, "latest_identity_event", {"event_type": event.event_type})
        return WebhookEventStatus.PROCESSED, None

    def _handle_dispute(self, event: GatewayEvent) -> tuple[WebhookEventStatus, str | None]:
        obj = event.object
        finix_dispute_id = obj.get("id")
        if not finix_dispute_id:
            return WebhookEventStatus.IGNORED, "Dispute has no id"

        transfer_id = obj.get("transfer")
        attempt = (
            PaymentAttemptRepository(self.db).get_by_transfer_id(transfer_id)
            if transfer_id
            else None
        )
        dispute = GatewayDisputeRepository(self.db).upsert(
            finix_dispute_id,
            transfer_id=transfer_id,
            payment_attempt_id=attempt.id if attempt else None,
            merchant_id=attempt.merchant_id if attempt else None,
            state=str(obj.get("state") or "PENDING").upper(),
            reason=obj.get("reason"),
            amount_cents=int(obj.get("amount") or 0),
            respond_by=obj.get("respond_by"),
            message=obj.get("message"),
            details=obj.get("dispute_details"),
            last_event_id=event.event_id,
        )
        logger.warning(
            "Dispute %s on transfer %s is %s (reason %s, %s cents)",
            finix_dispute_id,
            transfer_id,
            dispute.state,
            dispute.reason,
            dispute.amount_cents,
        )
        return WebhookEventStatus.PROCESSED, None

    def _handle_instrument(self, event: GatewayEvent) -> tuple[WebhookEventStatus, str | None]:
        obj = event.object
        finix_instrument_id = obj.get("id")
        instrument = (
            PaymentInstrumentRepository(self.db).get_by_finix_id(finix_instrument_id)
            if finix_instrument_id
            else None
        )
        if instrument is None:
            return WebhookEventStatus.IGNORED, "Payment instrument not found"

        month = obj.get("expiration_month")
        year = obj.get("expiration_year")
        if event.action != "updated" or not (month and year):
            return WebhookEventStatus.IGNORED, "No expiry change"

        instrument.card_expiration_month = int(month)  # type: ignore[assignment]
        instrument.card_expiration_year = int(year)  # type: ignore[assignment]
        logger.info("Updated expiry of payment instrument %s to %s/%s", instrument.id, month, year)
        return WebhookEventStatus.PROCESSED, None
