"""Payment gateway webhook endpoint."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.gateway_webhook_service import GatewayWebhookService

router = APIRouter()


@router.post(
    "/webhook",
    response_class=PlainTextResponse,
    summary="Receive gateway events",
    responses={
        401: {"description": "Missing or invalid signature"},
        500: {"description": "Event could not be persisted"},
    },
)
async def handle_gateway_webhook(
    request: Request,
    db: Session = Depends(get_db),
) -> PlainTextResponse:
    """Apply a signed gateway event.

    Answers ``OK`` for processed, ignored and malformed events so the sender
    does not retry them; only persistence failures ask for a retry.
    """
    raw_body = await request.body()
    result = GatewayWebhookService(db).ingest(raw_body, request.headers)
    return PlainTextResponse(result.body, status_code=result.status_code)
