"""Payment instrument repository."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.payment_instrument import PaymentInstrument


class PaymentInstrumentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, instrument_id: UUID) -> PaymentInstrument | None:
        return (
            self.db.query(PaymentInstrument).filter(PaymentInstrument.id == instrument_id).first()
        )

    def get_for_user(self, instrument_id: UUID, user_id: UUID) -> PaymentInstrument | None:
        return (
            self.db.query(PaymentInstrument)
            .filter(PaymentInstrument.id == instrument_id, PaymentInstrument.user_id == user_id)
            .first()
        )

    def get_by_finix_id(self, finix_payment_instrument_id: str) -> PaymentInstrument | None:
        return (
            self.db.query(PaymentInstrument)
            .filter(PaymentInstrument.finix_payment_instrument_id == finix_payment_instrument_id)
            .first()
        )

    def get_all_for_user(
        self, user_id: UUID, include_disabled: bool = False
    ) -> list[PaymentInstrument]:
        query = self.db.query(PaymentInstrument).filter(PaymentInstrument.user_id == user_id)
        if not include_disabled:
            query = query.filter(PaymentInstrument.enabled.is_(True))
        return query.order_by(PaymentInstrument.created_at.desc()).all()

    def create(self, user_id: UUID, **fields: Any) -> PaymentInstrument:
        instrument = PaymentInstrument(user_id=user_id, **fields)
        self.db.add(instrument)
        self.db.commit()
        self.db.refresh(instrument)
        return instrument

    def disable(self, instrument: PaymentInstrument) -> PaymentInstrument:
        instrument.enabled = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(instrument)
        return instrument
