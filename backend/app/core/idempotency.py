"""Replay of idempotent POST requests keyed by the ``Idempotency-Key`` header.

Endpoints call ``check_idempotency`` first. A key the caller already completed
short-circuits with the stored response and ``Idempotency-Replayed: true``; a
new key is reserved and handed back so the endpoint can store its response
with ``record_idempotency_response`` once it succeeds. Keys are scoped per
user. Payments do not use this helper: their key is part of the request body
and is enforced by the payment attempt itself.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, ValidationFailedError
from app.repositories.idempotency_repository import IdempotencyRepository

IDEMPOTENCY_HEADER = "Idempotency-Key"
REPLAY_HEADER = "Idempotency-Replayed"


@dataclass
class IdempotencyResult:
    """A freshly reserved key the endpoint must record its response under."""

    key: str
    method: str
    path: str


def replayed_response(status_code: int, body: Any) -> JSONResponse:
    response = JSONResponse(content=body, status_code=status_code)
    response.headers[REPLAY_HEADER] = "true"
    return response


def check_idempotency(
    request: Request,
    db: Session,
    user_id: UUID,
) -> JSONResponse | IdempotencyResult | None:
    """Look up the request's idempotency key.

    Returns ``None`` without a key, the stored response for a completed key,
    or an ``IdempotencyResult`` for a newly reserved one. Raises
    ValidationFailedError when the key was used on another endpoint and
    ConflictError while the first request with the key is still running.
    """
    key = request.headers.get(IDEMPOTENCY_HEADER)
    if not key:
        return None

    method, path = request.method, request.url.path
    repo = IdempotencyRepository(db)
    existing = repo.get_by_key(user_id, key)

    if existing is None:
        existing = repo.reserve(
            user_id=user_id, idempotency_key=key, request_method=method, request_path=path
        )
        if existing is None:
            return IdempotencyResult(key=key, method=method, path=path)

    if existing.request_method != method or existing.request_path != path:
        raise ValidationFailedError(f"Idempotency key {key} was used for a different request")
    if existing.response_status is None:
        raise ConflictError(f"A request with idempotency key {key} is still in progress")
    return replayed_response(int(existing.response_status), existing.response_body)


def record_idempotency_response(
    db: Session,
    user_id: UUID,
    key: str,
    status: int,
    body: dict[str, Any],
) -> None:
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(user_id, key)
    if record is not None:
        repo.update_response(record, status, body)
