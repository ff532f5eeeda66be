from app.schemas.facility import (
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    ConflictCheckResponse,
    FacilityCreate,
    FacilityResponse,
    SlotResponse,
)
from app.schemas.fee import FeeQuoteRequest, FeeQuoteResponse
from app.schemas.merchant import (
    FeeProfileResponse,
    FeeProfileUpdate,
    MerchantCreate,
    MerchantResponse,
    MerchantUpdate,
)
from app.schemas.payment import PaymentAttemptResponse, PaymentCreate, PaymentResultResponse
from app.schemas.payment_instrument import (
    PaymentInstrumentCreate,
    PaymentInstrumentResponse,
    WalletInstrumentCreate,
)
from app.schemas.record import RecordCreate, RecordResponse, RecordStatusUpdate
from app.schemas.refund import DisputeResponse, RefundCreate, RefundResponse

__all__ = [
    "BookingCreate",
    "BookingResponse",
    "BookingStatusUpdate",
    "ConflictCheckResponse",
    "DisputeResponse",
    "FacilityCreate",
    "FacilityResponse",
    "FeeProfileResponse",
    "FeeProfileUpdate",
    "FeeQuoteRequest",
    "FeeQuoteResponse",
    "MerchantCreate",
    "MerchantResponse",
    "MerchantUpdate",
    "PaymentAttemptResponse",
    "PaymentCreate",
    "PaymentInstrumentCreate",
    "PaymentInstrumentResponse",
    "PaymentResultResponse",
    "RecordCreate",
    "RecordResponse",
    "RecordStatusUpdate",
    "RefundCreate",
    "RefundResponse",
    "SlotResponse",
    "WalletInstrumentCreate",
]
