"""Tests for the payment orchestrator and payment API endpoints."""

import uuid
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AmountMismatchError,
    AuthorizationError,
    GatewayError,
    InvalidStateError,
    NotFoundError,
)
from app.models.bill import Bill
from app.models.business_license import BusinessLicense
from app.models.payment_attempt import PaymentAttempt, PaymentAttemptStatus
from app.models.permit import Permit
from app.models.tax_submission import TaxSubmission
from app.services.payment_service import (
    GATEWAY_ERROR,
    GATEWAY_UNREACHABLE,
    RECONCILIATION_TIMEOUT,
    PaymentOrchestrator,
    reconcile_pending_attempts,
)
from tests.conftest import OTHER_RESIDENT_ID, RESIDENT_ID


def _permit(db: Session, merchant, status="approved", base=10000, user_id=RESIDENT_ID):
    permit = Permit(
        user_id=user_id,
        merchant_id=merchant.id if merchant else None,
        title="Fence permit",
        status=status,
        base_amount_cents=base,
    )
    db.add(permit)
    db.commit()
    db.refresh(permit)
    return permit


def _pay(client, headers, record, instrument, total, key="key-1", kind="permit"):
    return client.post(
        f"/v1/payments/{kind}/{record.id}",
        json={
            "payment_instrument_id": str(instrument.id),
            "total_amount_cents": total,
            "idempotency_key": key,
        },
        headers=headers,
    )


def _failed_transfer(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        201,
        json={
            "id": "TRfailed1",
            "state": "FAILED",
            "failure_code": "INSUFFICIENT_FUNDS",
            "failure_message": "The card has insufficient funds",
        },
    )


def _pending_transfer(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"id": "TRpending1", "state": "PENDING"})


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestPayEndpoint:
    def test_successful_card_payment(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "succeeded"
        assert data["transfer_id"] == "TRsucceeded1"
        assert data["base_amount_cents"] == 10000
        assert data["service_fee_cents"] == 300
        assert data["total_amount_cents"] == 10300
        assert "Idempotency-Replayed" not in response.headers

        db_session.expire_all()
        permit = db_session.get(Permit, permit.id)
        assert permit.status == "issued"
        assert permit.payment_status == "paid"
        assert permit.service_fee_cents == 300
        assert permit.total_amount_cents == 10300
        assert permit.payment_reference == "TRsucceeded1"
        assert permit.paid_at is not None

        [transfer] = gateway_stub.transfer_requests
        assert transfer.headers["Idempotency-ID"] == "key-1"
        assert transfer.headers["Finix-Version"]

    def test_tolerates_one_cent_difference(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)
        response = _pay(client, resident_headers, permit, card, 10301)
        assert response.status_code == 200
        assert response.json()["total_amount_cents"] == 10300

    def test_amount_mismatch(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10000)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Total amount mismatch. Expected: 10300, Received: 10000",
        }
        assert gateway_stub.requests == []
        assert db_session.query(PaymentAttempt).count() == 0

    def test_bank_transfer_fee(
        self, client, resident_headers, db_session, merchant, bank_account, gateway_stub
    ):
        permit = _permit(db_session, merchant)
        response = _pay(client, resident_headers, permit, bank_account, 10070)
        assert response.status_code == 200
        assert response.json()["service_fee_cents"] == 70

    def test_business_license_is_grossed_up(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        license_ = BusinessLicense(
            user_id=RESIDENT_ID,
            merchant_id=merchant.id,
            title="Food truck license",
            status="approved",
            base_amount_cents=10000,
            business_name="Tacos Inc",
        )
        db_session.add(license_)
        db_session.commit()

        response = _pay(
            client, resident_headers, license_, card, 10308, kind="business_license"
        )

        assert response.status_code == 200
        assert response.json()["service_fee_cents"] == 308
        db_session.expire_all()
        license_ = db_session.get(BusinessLicense, license_.id)
        assert license_.status == "issued"
        assert license_.issued_at is not None

    def test_bill_becomes_paid(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        bill = Bill(
            user_id=RESIDENT_ID,
            merchant_id=merchant.id,
            title="Water bill",
            status="overdue",
            base_amount_cents=5000,
        )
        db_session.add(bill)
        db_session.commit()

        response = _pay(client, resident_headers, bill, card, 5175, kind="bill")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(Bill, bill.id).status == "paid"

    def test_tax_submission_payable_as_draft(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        submission = TaxSubmission(
            user_id=RESIDENT_ID,
            merchant_id=merchant.id,
            title="Q3 sales tax",
            status="draft",
            base_amount_cents=20000,
        )
        db_session.add(submission)
        db_session.commit()

        response = _pay(client, resident_headers, submission, card, 20550, kind="tax_submission")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(TaxSubmission, submission.id).status == "issued"

    def test_replay_returns_same_result(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)

        first = _pay(client, resident_headers, permit, card, 10300, key="retry-me")
        second = _pay(client, resident_headers, permit, card, 10300, key="retry-me")

        assert first.status_code == second.status_code == 200
        assert second.headers["Idempotency-Replayed"] == "true"
        assert second.json() == first.json()
        assert len(gateway_stub.transfer_requests) == 1
        assert db_session.query(PaymentAttempt).count() == 1

    def test_replay_by_other_user_rejected(
        self, client, resident_headers, other_resident_headers, db_session, merchant, card,
        gateway_stub,
    ):
        permit = _permit(db_session, merchant)
        _pay(client, resident_headers, permit, card, 10300, key="shared")

        response = _pay(client, other_resident_headers, permit, card, 10300, key="shared")

        assert response.status_code == 401

    def test_already_paid(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)
        _pay(client, resident_headers, permit, card, 10300, key="first")

        response = _pay(client, resident_headers, permit, card, 10300, key="second")

        assert response.status_code == 400
        assert "already been paid" in response.json()["error"]
        assert len(gateway_stub.transfer_requests) == 1

    def test_not_payable_status(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant, status="submitted")

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 400
        assert response.json()["error"] == (
            "Permit is not ready for payment. Current status: submitted"
        )

    def test_record_not_found(self, client, resident_headers, card, gateway_stub):
        response = client.post(
            f"/v1/payments/permit/{uuid.uuid4()}",
            json={
                "payment_instrument_id": str(card.id),
                "total_amount_cents": 100,
                "idempotency_key": "k",
            },
            headers=resident_headers,
        )
        assert response.status_code == 404

    def test_unknown_kind(self, client, resident_headers, card):
        response = client.post(
            f"/v1/payments/parking_ticket/{uuid.uuid4()}",
            json={
                "payment_instrument_id": str(card.id),
                "total_amount_cents": 100,
                "idempotency_key": "k",
            },
            headers=resident_headers,
        )
        assert response.status_code == 400

    def test_other_users_record(
        self, client, other_resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)
        response = _pay(client, other_resident_headers, permit, card, 10300)
        assert response.status_code == 401

    def test_disabled_instrument(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        card.enabled = False
        db_session.commit()
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 401
        assert response.json()["error"] == "Payment instrument is disabled"

    def test_merchant_not_configured(self, client, resident_headers, db_session, card, gateway_stub):
        permit = _permit(db_session, None)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 400
        assert response.json()["error"] == "Merchant not configured for payment processing"

    def test_gateway_declines(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = _failed_transfer
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "The card has insufficient funds"
        assert body["failure_code"] == "INSUFFICIENT_FUNDS"

        db_session.expire_all()
        attempt = db_session.query(PaymentAttempt).one()
        assert attempt.status == "failed"
        assert str(attempt.id) == body["payment_attempt_id"]
        permit = db_session.get(Permit, permit.id)
        assert permit.status == "approved"
        assert permit.payment_status == "unpaid"

    def test_gateway_http_error_response(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = lambda request: httpx.Response(
            422,
            json={"_embedded": {"errors": [{"code": "INVALID_FIELD", "message": "Bad source"}]}},
        )
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 500
        assert response.json()["failure_code"] == "INVALID_FIELD"

    def test_gateway_error_without_details(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = lambda request: httpx.Response(
            422, json={"_embedded": {"errors": ["bad"]}}
        )
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 500
        assert response.json()["failure_code"] == "HTTP_422"
        db_session.expire_all()
        assert db_session.query(PaymentAttempt).one().status == "failed"

    def test_unexpected_gateway_exception_fails_attempt(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        def explode(request: httpx.Request) -> httpx.Response:
            raise ValueError("malformed response")

        gateway_stub.handler = explode
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 500
        assert response.json()["failure_code"] == GATEWAY_ERROR
        db_session.expire_all()
        attempt = db_session.query(PaymentAttempt).one()
        assert attempt.status == "failed"
        assert db_session.get(Permit, permit.id).payment_status == "unpaid"

    def test_gateway_unreachable(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = _unreachable
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 500
        assert response.json()["failure_code"] == GATEWAY_UNREACHABLE
        db_session.expire_all()
        assert db_session.query(PaymentAttempt).one().status == "failed"

    def test_failed_attempt_replays_error(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = _failed_transfer
        permit = _permit(db_session, merchant)
        _pay(client, resident_headers, permit, card, 10300, key="declined")

        gateway_stub.handler = gateway_stub.succeed
        response = _pay(client, resident_headers, permit, card, 10300, key="declined")

        assert response.status_code == 500
        assert response.json()["failure_code"] == "INSUFFICIENT_FUNDS"
        assert len(gateway_stub.transfer_requests) == 1

    def test_pending_transfer(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = _pending_transfer
        permit = _permit(db_session, merchant)

        response = _pay(client, resident_headers, permit, card, 10300)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "pending"
        assert data["transfer_id"] == "TRpending1"
        db_session.expire_all()
        assert db_session.get(Permit, permit.id).payment_status == "unpaid"

    def test_second_payment_blocked_while_pending(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = _pending_transfer
        permit = _permit(db_session, merchant)

        first = _pay(client, resident_headers, permit, card, 10300, key="k1")
        second = _pay(client, resident_headers, permit, card, 10300, key="k2")

        assert first.status_code == 200
        assert second.status_code == 400
        assert "awaiting settlement" in second.json()["error"]
        assert len(gateway_stub.transfer_requests) == 1
        assert db_session.query(PaymentAttempt).count() == 1

    def test_new_key_allowed_after_failure(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = _failed_transfer
        permit = _permit(db_session, merchant)
        _pay(client, resident_headers, permit, card, 10300, key="k1")

        gateway_stub.handler = gateway_stub.succeed
        response = _pay(client, resident_headers, permit, card, 10300, key="k2")

        assert response.status_code == 200
        assert len(gateway_stub.transfer_requests) == 2

    def test_requires_auth(self, client, db_session, merchant, card):
        permit = _permit(db_session, merchant)
        response = _pay(client, {}, permit, card, 10300)
        assert response.status_code == 401


class TestPaymentHistory:
    def test_list_own_attempts(
        self, client, resident_headers, other_resident_headers, db_session, merchant, card,
        gateway_stub,
    ):
        permit = _permit(db_session, merchant)
        _pay(client, resident_headers, permit, card, 10300)

        mine = client.get("/v1/payments/", headers=resident_headers)
        theirs = client.get("/v1/payments/", headers=other_resident_headers)

        assert len(mine.json()) == 1
        assert mine.json()[0]["entity_kind"] == "permit"
        assert theirs.json() == []

    def test_filter_by_status(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        permit = _permit(db_session, merchant)
        _pay(client, resident_headers, permit, card, 10300)

        response = client.get("/v1/payments/?status=failed", headers=resident_headers)

        assert response.json() == []

    def test_get_attempt(
        self, client, resident_headers, other_resident_headers, staff_headers, db_session,
        merchant, card, gateway_stub,
    ):
        permit = _permit(db_session, merchant)
        attempt_id = _pay(client, resident_headers, permit, card, 10300).json()[
            "payment_attempt_id"
        ]

        assert client.get(f"/v1/payments/{attempt_id}", headers=resident_headers).status_code == 200
        assert client.get(f"/v1/payments/{attempt_id}", headers=staff_headers).status_code == 200
        other = client.get(f"/v1/payments/{attempt_id}", headers=other_resident_headers)
        assert other.status_code == 404


class TestPaymentOrchestrator:
    def test_errors_raised_directly(self, db_session, merchant, card, gateway_stub):
        orchestrator = PaymentOrchestrator(db_session, gateway=gateway_stub.gateway())
        permit = _permit(db_session, merchant)

        with pytest.raises(AmountMismatchError) as exc_info:
            orchestrator.process_payment("permit", permit.id, card.id, 1, "k1", RESIDENT_ID)
        assert exc_info.value.expected_cents == 10300

        with pytest.raises(AuthorizationError):
            orchestrator.process_payment(
                "permit", permit.id, card.id, 10300, "k2", OTHER_RESIDENT_ID
            )

        with pytest.raises(NotFoundError):
            orchestrator.process_payment("permit", uuid.uuid4(), card.id, 10300, "k3", RESIDENT_ID)

    def test_withdrawn_permit_not_payable(self, db_session, merchant, card, gateway_stub):
        orchestrator = PaymentOrchestrator(db_session, gateway=gateway_stub.gateway())
        permit = _permit(db_session, merchant, status="withdrawn")
        with pytest.raises(InvalidStateError):
            orchestrator.process_payment("permit", permit.id, card.id, 10300, "k", RESIDENT_ID)

    def test_decline_raises_gateway_error(self, db_session, merchant, card, gateway_stub):
        gateway_stub.handler = _failed_transfer
        orchestrator = PaymentOrchestrator(db_session, gateway=gateway_stub.gateway())
        permit = _permit(db_session, merchant)
        with pytest.raises(GatewayError) as exc_info:
            orchestrator.process_payment("permit", permit.id, card.id, 10300, "k", RESIDENT_ID)
        assert exc_info.value.failure_code == "INSUFFICIENT_FUNDS"

    def test_losing_a_key_race_replays_winner(
        self, db_session, merchant, card, gateway_stub, monkeypatch
    ):
        orchestrator = PaymentOrchestrator(db_session, gateway=gateway_stub.gateway())
        permit = _permit(db_session, merchant)
        winner = PaymentAttempt(
            user_id=RESIDENT_ID,
            entity_kind="permit",
            entity_id=permit.id,
            base_amount_cents=10000,
            service_fee_cents=300,
            total_amount_cents=10300,
            currency="USD",
            payment_instrument_id=card.id,
            idempotency_key="race",
            status=PaymentAttemptStatus.PENDING.value,
        )
        db_session.add(winner)
        db_session.commit()

        # The first lookup happens before the winner commits.
        real_lookup = orchestrator.attempt_repo.get_by_idempotency_key
        calls = []

        def lookup(key):
            calls.append(key)
            return None if len(calls) == 1 else real_lookup(key)

        monkeypatch.setattr(orchestrator.attempt_repo, "get_by_idempotency_key", lookup)

        result = orchestrator.process_payment(
            "permit", permit.id, card.id, 10300, "race", RESIDENT_ID
        )

        assert result.replayed is True
        assert result.payment_attempt_id == winner.id
        assert gateway_stub.transfer_requests == []
        assert db_session.query(PaymentAttempt).count() == 1


class TestReconciliation:
    def _attempt(self, db, permit, card, transfer_id=None, age_minutes=60):
        attempt = PaymentAttempt(
            user_id=RESIDENT_ID,
            entity_kind="permit",
            entity_id=permit.id,
            base_amount_cents=10000,
            service_fee_cents=300,
            total_amount_cents=10300,
            currency="USD",
            payment_instrument_id=card.id,
            idempotency_key=f"reconcile-{uuid.uuid4()}",
            transfer_id=transfer_id,
            status=PaymentAttemptStatus.PENDING.value,
            created_at=datetime.now(UTC) - timedelta(minutes=age_minutes),
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)
        return attempt

    def test_attempt_without_transfer_times_out(self, db_session, merchant, card, gateway_stub):
        permit = _permit(db_session, merchant)
        attempt = self._attempt(db_session, permit, card)

        changed = reconcile_pending_attempts(db_session, gateway=gateway_stub.gateway())

        assert changed == 1
        db_session.refresh(attempt)
        assert attempt.status == "failed"
        assert attempt.failure_code == RECONCILIATION_TIMEOUT

    def test_settles_from_gateway(self, db_session, merchant, card, gateway_stub):
        gateway_stub.handler = lambda request: httpx.Response(
            200, json={"id": "TRlate", "state": "SUCCEEDED"}
        )
        permit = _permit(db_session, merchant)
        attempt = self._attempt(db_session, permit, card, transfer_id="TRlate")

        changed = reconcile_pending_attempts(db_session, gateway=gateway_stub.gateway())

        assert changed == 1
        db_session.refresh(attempt)
        db_session.refresh(permit)
        assert attempt.status == "succeeded"
        assert permit.status == "issued"
        assert permit.payment_status == "paid"

    def test_recent_attempts_left_alone(self, db_session, merchant, card, gateway_stub):
        permit = _permit(db_session, merchant)
        attempt = self._attempt(db_session, permit, card, age_minutes=1)

        assert reconcile_pending_attempts(db_session, gateway=gateway_stub.gateway()) == 0
        db_session.refresh(attempt)
        assert attempt.status == "pending"

    def test_unreachable_gateway_skips(self, db_session, merchant, card, gateway_stub):
        gateway_stub.handler = _unreachable
        permit = _permit(db_session, merchant)
        attempt = self._attempt(db_session, permit, card, transfer_id="TRgone")

        assert reconcile_pending_attempts(db_session, gateway=gateway_stub.gateway()) == 0
        db_session.refresh(attempt)
        assert attempt.status == "pending"
