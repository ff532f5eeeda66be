from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.gateway_dispute import GatewayDispute


class GatewayDisputeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, dispute_id: UUID) -> GatewayDispute | None:
        return self.db.query(GatewayDispute).filter(GatewayDispute.id == dispute_id).first()

    def get_by_finix_id(self, finix_dispute_id: str) -> GatewayDispute | None:
        return (
            self.db.query(GatewayDispute)
            .filter(GatewayDispute.finix_dispute_id == finix_dispute_id)
            .first()
        )

    def get_all(
        self, skip: int = 0, limit: int = 100, state: str | None = None
    ) -> list[GatewayDispute]:
        query = self.db.query(GatewayDispute)
        if state:
            query = query.filter(GatewayDispute.state == state.upper())
        return query.order_by(GatewayDispute.created_at.desc()).offset(skip).limit(limit).all()

    def upsert(self, finix_dispute_id: str, **fields: Any) -> GatewayDispute:
        """Stage a create or overwrite; committed with the webhook audit row."""
        dispute = self.get_by_finix_id(finix_dispute_id)
        if dispute is None:
            dispute = GatewayDispute(finix_dispute_id=finix_dispute_id)
            self.db.add(dispute)
        for key, value in fields.items():
            setattr(dispute, key, value)
        return dispute
