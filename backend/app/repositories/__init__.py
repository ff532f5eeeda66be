from app.repositories.booking_repository import BookingRepository
from app.repositories.domain_record_repository import DomainRecordRepository
from app.repositories.facility_repository import FacilityRepository
from app.repositories.gateway_dispute_repository import GatewayDisputeRepository
from app.repositories.gateway_webhook_event_repository import GatewayWebhookEventRepository
from app.repositories.idempotency_repository import IdempotencyRepository
from app.repositories.merchant_repository import MerchantRepository
from app.repositories.payment_attempt_repository import PaymentAttemptRepository
from app.repositories.payment_instrument_repository import PaymentInstrumentRepository
from app.repositories.refund_repository import RefundRepository

__all__ = [
    "BookingRepository",
    "DomainRecordRepository",
    "FacilityRepository",
    "GatewayDisputeRepository",
    "GatewayWebhookEventRepository",
    "IdempotencyRepository",
    "MerchantRepository",
    "PaymentAttemptRepository",
    "PaymentInstrumentRepository",
    "RefundRepository",
]
