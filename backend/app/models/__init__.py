from app.models.bill import Bill, BillStatus
from app.models.booking_slot_claim import BookingSlotClaim
from app.models.business_license import BusinessLicense, BusinessLicenseStatus
from app.models.domain_record import PayableRecordMixin, PaymentStatus
from app.models.facility import BookingMode, Facility
from app.models.gateway_dispute import GatewayDispute
from app.models.gateway_webhook_event import GatewayWebhookEvent, WebhookEventStatus
from app.models.idempotency_record import IdempotencyRecord
from app.models.merchant import Merchant, ProcessingStatus, VerificationStatus
from app.models.merchant_fee_profile import MerchantFeeProfile
from app.models.payment_attempt import EntityKind, PaymentAttempt, PaymentAttemptStatus
from app.models.payment_instrument import InstrumentType, PaymentInstrument, WalletType
from app.models.permit import Permit, PermitStatus
from app.models.refund import Refund, RefundStatus
from app.models.service_application import (
    INACTIVE_BOOKING_STATUSES,
    ServiceApplication,
    ServiceApplicationStatus,
)
from app.models.tax_submission import TaxSubmission, TaxSubmissionStatus

__all__ = [
    "Bill",
    "BillStatus",
    "BookingMode",
    "BookingSlotClaim",
    "BusinessLicense",
    "BusinessLicenseStatus",
    "EntityKind",
    "Facility",
    "GatewayDispute",
    "GatewayWebhookEvent",
    "IdempotencyRecord",
    "INACTIVE_BOOKING_STATUSES",
    "InstrumentType",
    "Merchant",
    "MerchantFeeProfile",
    "PayableRecordMixin",
    "PaymentAttempt",
    "PaymentAttemptStatus",
    "PaymentInstrument",
    "PaymentStatus",
    "Permit",
    "PermitStatus",
    "ProcessingStatus",
    "Refund",
    "RefundStatus",
    "ServiceApplication",
    "ServiceApplicationStatus",
    "TaxSubmission",
    "TaxSubmissionStatus",
    "VerificationStatus",
    "WalletType",
    "WebhookEventStatus",
]
