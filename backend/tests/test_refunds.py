"""Tests for refunding payments and settling refunds from gateway events."""

import json
import uuid

import httpx
import pytest

from app.core.exceptions import GatewayError, InvalidStateError, ValidationFailedError
from app.models.gateway_webhook_event import GatewayWebhookEvent
from app.models.payment_attempt import PaymentAttempt
from app.models.permit import Permit
from app.models.refund import Refund
from app.services.gateway_webhook_service import SIGNATURE_HEADER
from app.services.payment_gateway import generate_signature
from app.services.refund_service import REFUND_GATEWAY_ERROR, RefundService
from tests.conftest import RESIDENT_ID, STAFF_ID, WEBHOOK_SECRET


def _permit(db, merchant):
    permit = Permit(
        user_id=RESIDENT_ID,
        merchant_id=merchant.id,
        title="Shed permit",
        status="approved",
        base_amount_cents=10000,
    )
    db.add(permit)
    db.commit()
    db.refresh(permit)
    return permit


def _pay(client, headers, permit, card):
    return client.post(
        f"/v1/payments/permit/{permit.id}",
        json={
            "payment_instrument_id": str(card.id),
            "total_amount_cents": 10300,
            "idempotency_key": "refund-key",
        },
        headers=headers,
    )


def _post_event(client, payload):
    body = json.dumps(payload).encode()
    headers = {
        "Content-Type": "application/json",
        SIGNATURE_HEADER: generate_signature(body, WEBHOOK_SECRET),
    }
    return client.post("/webhook", content=body, headers=headers)


def _reversal(state="SUCCEEDED", reversal_id="TRreversal1"):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/reversals"):
            body = json.loads(request.content)
            return httpx.Response(
                201,
                json={"id": reversal_id, "state": state, "amount": body["refund_amount"]},
            )
        return httpx.Response(
            201, json={"id": "TRsucceeded1", "state": "SUCCEEDED", "currency": "USD"}
        )

    return handler


@pytest.fixture
def paid_attempt(client, resident_headers, db_session, merchant, card, gateway_stub):
    permit = _permit(db_session, merchant)
    response = _pay(client, resident_headers, permit, card)
    assert response.status_code == 200
    return db_session.get(PaymentAttempt, uuid.UUID(response.json()["payment_attempt_id"]))


def _refund(client, headers, attempt, **body):
    return client.post(
        f"/v1/payments/{attempt.id}/refund",
        json={"reason": "Permit withdrawn by the city", **body},
        headers=headers,
    )


class TestRefundEndpoint:
    def test_full_refund(self, client, staff_headers, db_session, paid_attempt, gateway_stub):
        gateway_stub.handler = _reversal()

        response = _refund(client, staff_headers, paid_attempt)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "succeeded"
        assert data["amount_cents"] == 10300
        assert data["original_amount_cents"] == 10300
        assert data["transfer_id"] == "TRsucceeded1"
        assert data["reversal_id"] == "TRreversal1"
        assert data["requested_by"] == str(STAFF_ID)
        assert data["completed_at"] is not None

        reversal = gateway_stub.requests[-1]
        assert reversal.url.path == "/transfers/TRsucceeded1/reversals"
        body = json.loads(reversal.content)
        assert body["refund_amount"] == 10300
        assert body["tags"]["payment_attempt_id"] == str(paid_attempt.id)

        db_session.expire_all()
        permit = db_session.get(Permit, paid_attempt.entity_id)
        assert permit.payment_status == "paid"

    def test_partial_refund(self, client, staff_headers, paid_attempt, gateway_stub):
        gateway_stub.handler = _reversal()

        response = _refund(client, staff_headers, paid_attempt, amount_cents=2500)

        assert response.status_code == 201
        assert response.json()["amount_cents"] == 2500
        assert json.loads(gateway_stub.requests[-1].content)["refund_amount"] == 2500

    def test_amount_above_total_rejected(self, client, staff_headers, paid_attempt, gateway_stub):
        response = _refund(client, staff_headers, paid_attempt, amount_cents=10301)

        assert response.status_code == 400
        assert "between 1 and 10300" in response.json()["error"]
        assert not gateway_stub.requests[1:]

    def test_second_refund_rejected(
        self, client, staff_headers, db_session, paid_attempt, gateway_stub
    ):
        gateway_stub.handler = _reversal()
        assert _refund(client, staff_headers, paid_attempt).status_code == 201

        response = _refund(client, staff_headers, paid_attempt)

        assert response.status_code == 400
        assert response.json()["error"] == "Refund already exists for this payment"
        assert db_session.query(Refund).count() == 1

    def test_gateway_decline_marks_refund_failed(
        self, client, staff_headers, db_session, paid_attempt, gateway_stub
    ):
        def decline(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                201,
                json={"id": "TRreversal1", "state": "FAILED", "failure_code": "REFUND_DECLINED"},
            )

        gateway_stub.handler = decline

        response = _refund(client, staff_headers, paid_attempt)

        assert response.status_code == 500
        assert response.json()["failure_code"] == "REFUND_DECLINED"
        refund = db_session.query(Refund).one()
        assert refund.status == "failed"

    def test_retry_allowed_after_failed_refund(
        self, client, staff_headers, db_session, paid_attempt, gateway_stub
    ):
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway_stub.handler = unreachable
        response = _refund(client, staff_headers, paid_attempt)
        assert response.status_code == 500
        assert response.json()["failure_code"] == REFUND_GATEWAY_ERROR

        gateway_stub.handler = _reversal()
        assert _refund(client, staff_headers, paid_attempt).status_code == 201

        statuses = sorted(r.status for r in db_session.query(Refund).all())
        assert statuses == ["failed", "succeeded"]

    def test_list_refunds(self, client, staff_headers, paid_attempt, gateway_stub):
        gateway_stub.handler = _reversal()
        _refund(client, staff_headers, paid_attempt, amount_cents=100)

        response = client.get(f"/v1/payments/{paid_attempt.id}/refunds", headers=staff_headers)

        assert response.status_code == 200
        assert [r["amount_cents"] for r in response.json()] == [100]

    def test_residents_cannot_refund(self, client, resident_headers, paid_attempt, gateway_stub):
        response = _refund(client, resident_headers, paid_attempt)
        assert response.status_code == 401

    def test_unknown_attempt(self, client, staff_headers, gateway_stub):
        response = client.post(
            "/v1/payments/00000000-0000-0000-0000-00000000dead/refund",
            json={"reason": "typo"},
            headers=staff_headers,
        )
        assert response.status_code == 404


class TestRefundService:
    def test_unsettled_attempt_not_refundable(
        self, client, resident_headers, db_session, merchant, card, gateway_stub
    ):
        gateway_stub.handler = lambda request: httpx.Response(
            201, json={"id": "TRpending1", "state": "PENDING"}
        )
        permit = _permit(db_session, merchant)
        response = _pay(client, resident_headers, permit, card)
        attempt_id = uuid.UUID(response.json()["payment_attempt_id"])
        service = RefundService(db_session, gateway=gateway_stub.gateway())

        with pytest.raises(InvalidStateError):
            service.refund_payment(attempt_id, STAFF_ID, "duplicate charge")

    def test_zero_amount_rejected(self, db_session, paid_attempt, gateway_stub):
        service = RefundService(db_session, gateway=gateway_stub.gateway())
        with pytest.raises(ValidationFailedError):
            service.refund_payment(paid_attempt.id, STAFF_ID, "oops", amount_cents=0)

    def test_unexpected_gateway_exception(self, db_session, paid_attempt, gateway_stub):
        def explode(request: httpx.Request) -> httpx.Response:
            raise ValueError("bad gateway payload")

        gateway_stub.handler = explode
        service = RefundService(db_session, gateway=gateway_stub.gateway())

        with pytest.raises(GatewayError) as excinfo:
            service.refund_payment(paid_attempt.id, STAFF_ID, "duplicate charge")

        assert excinfo.value.failure_code == REFUND_GATEWAY_ERROR
        assert db_session.query(Refund).one().status == "failed"


class TestReversalEvents:
    def _event(self, state):
        return {
            "id": "EVreversal",
            "type": "transfer.updated",
            "data": {"object": {"id": "TRreversal1", "state": state}},
        }

    def test_pending_refund_settled_by_webhook(
        self, client, staff_headers, db_session, paid_attempt, gateway_stub
    ):
        gateway_stub.handler = _reversal(state="PENDING")
        assert _refund(client, staff_headers, paid_attempt).json()["status"] == "pending"

        response = _post_event(client, self._event("SUCCEEDED"))

        assert response.status_code == 200
        db_session.expire_all()
        refund = db_session.query(Refund).one()
        assert refund.status == "succeeded"
        assert refund.completed_at is not None
        assert db_session.get(PaymentAttempt, paid_attempt.id).status == "succeeded"
        assert db_session.query(GatewayWebhookEvent).one().status == "processed"

    def test_settled_refund_not_changed_again(
        self, client, staff_headers, db_session, paid_attempt, gateway_stub
    ):
        gateway_stub.handler = _reversal()
        _refund(client, staff_headers, paid_attempt)

        _post_event(client, self._event("FAILED"))

        db_session.expire_all()
        assert db_session.query(Refund).one().status == "succeeded"
        assert db_session.query(GatewayWebhookEvent).one().status == "ignored"
