"""Payment gateway abstraction layer.

The portal charges residents through Finix. ``PaymentGatewayBase`` is the
seam the orchestrator, webhook ingestor and reconciliation task talk to;
``FinixGateway`` is the HTTP implementation.
"""

import hashlib
import hmac
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class TransferState:
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    PENDING = "PENDING"
    CANCELED = "CANCELED"
    UNKNOWN = "UNKNOWN"


@dataclass
class TransferResult:
    """Outcome of a transfer request, as reported by the gateway."""

    state: str
    transfer_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    failure_code: str | None = None
    failure_message: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state == TransferState.SUCCEEDED

    @property
    def pending(self) -> bool:
        return self.state == TransferState.PENDING

    @property
    def failed(self) -> bool:
        return self.state in (TransferState.FAILED, TransferState.CANCELED, TransferState.UNKNOWN)


@dataclass
class InstrumentResult:
    instrument_id: str
    instrument_type: str
    card_brand: str | None = None
    last_four: str | None = None
    expiration_month: int | None = None
    expiration_year: int | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class GatewayEvent:
    """A webhook event normalized from either envelope form."""

    event_type: str
    entity: str
    event_id: str | None = None
    object: dict[str, Any] = field(default_factory=dict)

    @property
    def action(self) -> str:
        """Event name without the entity prefix, e.g. ``processing_updated``."""
        prefix = f"{self.entity}."
        if self.event_type.startswith(prefix):
            return self.event_type[len(prefix) :]
        return self.event_type


def generate_signature(payload: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of ``payload`` under ``secret``."""
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def parse_event(payload: dict[str, Any]) -> GatewayEvent:
    """Normalize a gateway webhook envelope.

    Accepts ``{id?, type, data: {object}}`` where ``type`` is
    ``<entity>.<event>``, and the native ``{id, entity, type, _embedded:
    {<entities>: [object]}}`` form. Raises ValueError when neither matches.
    """
    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("Event has no type")

    entity = payload.get("entity")
    embedded = payload.get("_embedded")

    if isinstance(embedded, dict) and entity:
        obj: dict[str, Any] = {}
        for key in (f"{entity}s", entity, f"payment_{entity}s"):
            items = embedded.get(key)
            if isinstance(items, list) and items:
                obj = items[0]
                break
            if isinstance(items, dict):
                obj = items
                break
        full_type = event_type if "." in event_type else f"{entity}.{event_type}"
        return GatewayEvent(
            event_type=full_type, entity=str(entity), event_id=payload.get("id"), object=obj
        )

    data = payload.get("data")
    obj = data.get("object", {}) if isinstance(data, dict) else {}
    if not entity:
        entity = event_type.split(".", 1)[0]
    return GatewayEvent(
        event_type=event_type,
        entity=str(entity),
        event_id=payload.get("id"),
        object=obj if isinstance(obj, dict) else {},
    )


class PaymentGatewayBase(ABC):
    """Abstract base class for payment gateways."""

    @abstractmethod
    def create_transfer(
        self,
        *,
        merchant_id: str,
        source_instrument_id: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        fraud_session_id: str | None = None,
        tags: dict[str, str] | None = None,
    ) -> TransferResult:
        """Debit ``source_instrument_id`` in favour of ``merchant_id``.

        Raises httpx.HTTPError when the gateway cannot be reached.
        """
        pass  # pragma: no cover

    @abstractmethod
    def fetch_transfer(self, transfer_id: str) -> TransferResult:
        pass  # pragma: no cover

    @abstractmethod
    def create_reversal(
        self,
        *,
        transfer_id: str,
        amount_cents: int,
        tags: dict[str, str] | None = None,
    ) -> TransferResult:
        """Refund part or all of a settled transfer.

        Raises httpx.HTTPError when the gateway cannot be reached.
        """
        pass  # pragma: no cover

    @abstractmethod
    def create_payment_instrument(
        self,
        *,
        identity_id: str | None,
        wallet_type: str,
        third_party_token: str,
        merchant_identity_id: str | None = None,
    ) -> InstrumentResult:
        """Tokenize a Google Pay or Apple Pay token."""
        pass  # pragma: no cover

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        pass  # pragma: no cover


class FinixGateway(PaymentGatewayBase):
    """Finix REST API client."""

    def __init__(
        self,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        webhook_secret: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.finix_base_url).rstrip("/")
        self.username = username if username is not None else settings.finix_application_id
        self.password = password if password is not None else settings.finix_api_secret
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.finix_webhook_secret
        )
        self.api_version = api_version or settings.finix_api_version
        self.timeout = timeout or settings.gateway_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            auth=(self.username, self.password),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Finix-Version": self.api_version,
            },
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _error_details(body: dict[str, Any], status_code: int) -> tuple[str, str]:
        embedded = body.get("_embedded") if isinstance(body, dict) else None
        errors = embedded.get("errors") if isinstance(embedded, dict) else None
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            return (
                str(first.get("code") or f"HTTP_{status_code}"),
                str(first.get("message") or "Payment gateway error"),
            )
        return f"HTTP_{status_code}", f"Payment gateway returned HTTP {status_code}"

    def _transfer_from_response(self, response: httpx.Response) -> TransferResult:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error:
            code, message = self._error_details(body, response.status_code)
            return TransferResult(
                state=TransferState.FAILED,
                transfer_id=body.get("id"),
                failure_code=code,
                failure_message=message,
                raw=body,
            )

        state = str(body.get("state") or TransferState.UNKNOWN).upper()
        result = TransferResult(
            state=state,
            transfer_id=body.get("id"),
            amount=body.get("amount"),
            currency=body.get("currency"),
            failure_code=body.get("failure_code"),
            failure_message=body.get("failure_message"),
            raw=body,
        )
        if result.failed and not result.failure_code:
            result.failure_code = f"TRANSFER_{state}"
            result.failure_message = result.failure_message or f"Transfer {state.lower()}"
        return result

    def create_transfer(
        self,
        *,
        merchant_id: str,
        source_instrument_id: str,
        amount_cents: int,
        currency: str,
        idempotency_key: str,
        fraud_session_id: str | None = None,
        tags: dict[str, str] | None = None,
    ) -> TransferResult:
        body: dict[str, Any] = {
            "merchant": merchant_id,
            "currency": currency,
            "amount": amount_cents,
            "source": source_instrument_id,
            "idempotency_id": idempotency_key,
        }
        if fraud_session_id:
            body["fraud_session_id"] = fraud_session_id
        if tags:
            body["tags"] = tags

        with self._client() as client:
            response = client.post(
                "/transfers", json=body, headers={"Idempotency-ID": idempotency_key}
            )
        result = self._transfer_from_response(response)
        logger.info(
            "Gateway transfer %s for merchant %s: %s", result.transfer_id, merchant_id, result.state
        )
        return result

    def fetch_transfer(self, transfer_id: str) -> TransferResult:
        with self._client() as client:
            response = client.get(f"/transfers/{transfer_id}")
        return self._transfer_from_response(response)

    def create_reversal(
        self,
        *,
        transfer_id: str,
        amount_cents: int,
        tags: dict[str, str] | None = None,
    ) -> TransferResult:
        body: dict[str, Any] = {"refund_amount": amount_cents}
        if tags:
            body["tags"] = tags

        with self._client() as client:
            response = client.post(f"/transfers/{transfer_id}/reversals", json=body)
        result = self._transfer_from_response(response)
        logger.info(
            "Gateway reversal %s of transfer %s: %s", result.transfer_id, transfer_id, result.state
        )
        return result

    def create_payment_instrument(
        self,
        *,
        identity_id: str | None,
        wallet_type: str,
        third_party_token: str,
        merchant_identity_id: str | None = None,
    ) -> InstrumentResult:
        body: dict[str, Any] = {
            "type": wallet_type,
            "third_party_token": third_party_token,
        }
        if identity_id:
            body["identity"] = identity_id
        if merchant_identity_id:
            body["merchant_identity"] = merchant_identity_id

        with self._client() as client:
            response = client.post("/payment_instruments", json=body)
        response.raise_for_status()
        data: dict[str, Any] = response.json()

        card = data.get("card_details") or {}
        return InstrumentResult(
            instrument_id=str(data["id"]),
            instrument_type=str(data.get("instrument_type") or "PAYMENT_CARD"),
            card_brand=data.get("brand") or card.get("brand"),
            last_four=data.get("last_four") or card.get("last_four"),
            expiration_month=data.get("expiration_month"),
            expiration_year=data.get("expiration_year"),
            raw=data,
        )

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        """Check the hex HMAC-SHA256 signature of a webhook body."""
        if not self.webhook_secret or not signature:
            return False

        # Support both raw hex and "sha256=" prefixed signatures
        if signature.startswith("sha256="):
            signature = signature[7:]

        expected = generate_signature(payload, self.webhook_secret)
        return hmac.compare_digest(expected, signature)


def get_payment_gateway() -> PaymentGatewayBase:
    """Factory for the configured payment gateway."""
    return FinixGateway()
