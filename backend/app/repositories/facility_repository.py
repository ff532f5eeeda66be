"""Facility repository."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.facility import Facility


class FacilityRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, facility_id: UUID) -> Facility | None:
        return self.db.query(Facility).filter(Facility.id == facility_id).first()

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Facility]:
        return self.db.query(Facility).order_by(Facility.name).offset(skip).limit(limit).all()

    def create(self, **fields: Any) -> Facility:
        facility = Facility(**fields)
        self.db.add(facility)
        self.db.commit()
        self.db.refresh(facility)
        return facility
