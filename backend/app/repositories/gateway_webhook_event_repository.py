from typing import Any

from sqlalchemy.orm import Session

from app.models.gateway_webhook_event import GatewayWebhookEvent, WebhookEventStatus


class GatewayWebhookEventRepository:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        *,
        event_type: str,
        event_id: str | None,
        entity: str | None,
        entity_id: str | None,
        payload: dict[str, Any] | None,
        status: WebhookEventStatus,
        note: str | None = None,
    ) -> GatewayWebhookEvent:
        """Stage an audit row. Committed with the event's own changes."""
        event = GatewayWebhookEvent(
            event_type=event_type,
            event_id=event_id,
            entity=entity,
            entity_id=entity_id,
            payload=payload,
            status=status.value,
            note=note,
        )
        self.db.add(event)
        return event

    def get_all(self, skip: int = 0, limit: int = 100) -> list[GatewayWebhookEvent]:
        return (
            self.db.query(GatewayWebhookEvent)
            .order_by(GatewayWebhookEvent.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
