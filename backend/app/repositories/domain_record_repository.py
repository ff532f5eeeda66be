"""Generic repository over the payable domain record tables."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session


class DomainRecordRepository:
    """Data access for one payable record model (Permit, Bill, ...)."""

    def __init__(self, db: Session, model: Any):
        self.db = db
        self.model = model

    def get_by_id(self, record_id: UUID) -> Any | None:
        return self.db.query(self.model).filter(self.model.id == record_id).first()

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        user_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Any]:
        query = self.db.query(self.model)
        if user_id is not None:
            query = query.filter(self.model.user_id == user_id)
        if status:
            query = query.filter(self.model.status == status)
        return query.order_by(self.model.created_at.desc()).offset(skip).limit(limit).all()

    def create(self, user_id: UUID, **fields: Any) -> Any:
        record = self.model(user_id=user_id, **fields)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def set_status(self, record: Any, status: str) -> Any:
        record.status = status
        self.db.commit()
        self.db.refresh(record)
        return record
