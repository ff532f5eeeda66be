"""Domain error taxonomy and the handlers that render it.

Every error raised by a service is a ``PortalError`` subclass carrying the HTTP
status it maps to. ``register_exception_handlers`` turns those, plus FastAPI's
own ``HTTPException`` and validation errors, into a single
``{"success": false, "error": message}`` payload.
"""

import logging
from collections.abc import Iterable
from typing import Any
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message}


class NotFoundError(PortalError):
    status_code = 404


class ValidationFailedError(PortalError):
    status_code = 400


class AuthorizationError(PortalError):
    status_code = 401


class InvalidStateError(PortalError):
    status_code = 400


class AmountMismatchError(PortalError):
    status_code = 400

    def __init__(self, expected_cents: int, received_cents: int):
        super().__init__(
            f"Total amount mismatch. Expected: {expected_cents}, Received: {received_cents}"
        )
        self.expected_cents = expected_cents
        self.received_cents = received_cents


class DuplicateIdempotencyKeyError(PortalError):
    """Raised when a payment attempt with the same idempotency key already exists."""

    status_code = 409

    def __init__(self, idempotency_key: str):
        super().__init__(f"Idempotency key already used: {idempotency_key}")
        self.idempotency_key = idempotency_key


class GatewayError(PortalError):
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        failure_code: str | None = None,
        payment_attempt_id: UUID | None = None,
    ):
        super().__init__(message)
        self.failure_code = failure_code
        self.payment_attempt_id = payment_attempt_id

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.failure_code:
            payload["failure_code"] = self.failure_code
        if self.payment_attempt_id is not None:
            payload["payment_attempt_id"] = str(self.payment_attempt_id)
        return payload


class OutsideOperatingHoursError(PortalError):
    status_code = 400


class InvalidIntervalError(PortalError):
    status_code = 400


class ConflictError(PortalError):
    status_code = 409


def _flatten_detail(detail: Any) -> str:
    """Convert arbitrary exception detail payloads into a string message."""
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        return "; ".join(f"{key}: {value}" for key, value in detail.items())
    if isinstance(detail, Iterable) and not isinstance(detail, (bytes, bytearray)):
        return "; ".join(_flatten_detail(item) for item in detail)
    if detail is None:
        return "An error occurred"
    return str(detail)


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that return the normalized error payload."""

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        response = JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": _flatten_detail(exc.detail)},
        )
        if exc.headers:
            for key, value in exc.headers.items():
                response.headers[key] = value
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for error in exc.errors():
            location = [str(loc) for loc in error.get("loc", []) if loc != "body"]
            message = error.get("msg", "Invalid input")
            if location:
                messages.append(f"{'.'.join(location)}: {message}")
            else:
                messages.append(message)

        detail = "; ".join(messages) if messages else "Invalid request"
        return JSONResponse(status_code=400, content={"success": False, "error": detail})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception while processing %s %s", request.method, request.url)
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )
