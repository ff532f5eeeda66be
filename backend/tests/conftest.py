"""Shared test fixtures for all test modules."""

import contextlib
import json
import uuid
from collections.abc import Callable
from datetime import time

import httpx
import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core import database as db_module
from app.core.auth import UserRole, create_access_token
from app.core.database import Base
from app.models.facility import Facility
from app.models.merchant import Merchant
from app.models.merchant_fee_profile import MerchantFeeProfile
from app.models.payment_instrument import InstrumentType, PaymentInstrument
from app.services.payment_gateway import FinixGateway

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

RESIDENT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OTHER_RESIDENT_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
STAFF_ID = uuid.UUID("00000000-0000-0000-0000-0000000000ff")

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """A session on the test database for direct repository/service use."""
    session = _TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from app.main import app

    return TestClient(app)


def auth_headers(user_id: uuid.UUID = RESIDENT_ID, role: UserRole = UserRole.RESIDENT) -> dict:
    token = create_access_token(user_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def resident_headers() -> dict:
    return auth_headers(RESIDENT_ID)


@pytest.fixture
def other_resident_headers() -> dict:
    return auth_headers(OTHER_RESIDENT_ID)


@pytest.fixture
def staff_headers() -> dict:
    return auth_headers(STAFF_ID, UserRole.STAFF)


@pytest.fixture
def merchant(db_session: Session) -> Merchant:
    """A merchant with processing enabled and the default 250bp + 50c card fee."""
    merchant = Merchant(
        merchant_name="City Clerk",
        finix_merchant_id="MUmerchant1",
        finix_identity_id="IDmerchant1",
        processing_enabled=True,
    )
    db_session.add(merchant)
    db_session.commit()
    profile = MerchantFeeProfile(
        merchant_id=merchant.id,
        basis_points=250,
        fixed_fee=50,
        ach_basis_points=20,
        ach_fixed_fee=50,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(merchant)
    return merchant


@pytest.fixture
def card(db_session: Session) -> PaymentInstrument:
    instrument = PaymentInstrument(
        user_id=RESIDENT_ID,
        instrument_type=InstrumentType.PAYMENT_CARD.value,
        finix_payment_instrument_id="PIcard1",
        card_brand="VISA",
        card_last_four="4242",
    )
    db_session.add(instrument)
    db_session.commit()
    db_session.refresh(instrument)
    return instrument


@pytest.fixture
def bank_account(db_session: Session) -> PaymentInstrument:
    instrument = PaymentInstrument(
        user_id=RESIDENT_ID,
        instrument_type=InstrumentType.BANK_ACCOUNT.value,
        finix_payment_instrument_id="PIbank1",
        bank_last_four="6789",
    )
    db_session.add(instrument)
    db_session.commit()
    db_session.refresh(instrument)
    return instrument


@pytest.fixture
def facility(db_session: Session) -> Facility:
    """Open every day 09:00-17:00 on a 30-minute grid, 60-minute default slot."""
    facility = Facility(
        name="Community Hall",
        available_days=[
            "monday",
            "tuesday",
            "wednesday",
            "thursday",
            "friday",
            "saturday",
            "sunday",
        ],
        open_time=time(9, 0),
        close_time=time(17, 0),
        granularity_minutes=30,
        slot_duration_minutes=60,
        max_advance_days=60,
        base_fee_cents=2500,
    )
    db_session.add(facility)
    db_session.commit()
    db_session.refresh(facility)
    return facility


class GatewayStub:
    """Collects requests sent to the gateway and answers with a configurable handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = self.succeed

    @staticmethod
    def succeed(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        return httpx.Response(
            201,
            json={
                "id": "TRsucceeded1",
                "state": "SUCCEEDED",
                "amount": body.get("amount"),
                "currency": body.get("currency"),
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def transfer_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/transfers")]

    def gateway(self) -> FinixGateway:
        return FinixGateway(
            base_url="https://gateway.test",
            username="user",
            password="pass",
            webhook_secret=WEBHOOK_SECRET,
            transport=httpx.MockTransport(self),
        )


@pytest.fixture
def gateway_stub(monkeypatch: pytest.MonkeyPatch) -> GatewayStub:
    """Route every gateway call made by the app through an in-process mock transport."""
    stub = GatewayStub()
    for target in (
        "app.services.payment_service.get_payment_gateway",
        "app.services.gateway_webhook_service.get_payment_gateway",
        "app.routers.payment_instruments.get_payment_gateway",
        "app.services.refund_service.get_payment_gateway",
    ):
        monkeypatch.setattr(target, stub.gateway)
    return stub
