"""Merchant and fee profile repository."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.merchant import Merchant
from app.models.merchant_fee_profile import MerchantFeeProfile


class MerchantRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, merchant_id: UUID) -> Merchant | None:
        return self.db.query(Merchant).filter(Merchant.id == merchant_id).first()

    def get_by_finix_merchant_id(self, finix_merchant_id: str) -> Merchant | None:
        return (
            self.db.query(Merchant).filter(Merchant.finix_merchant_id == finix_merchant_id).first()
        )

    def get_by_finix_identity_id(self, finix_identity_id: str) -> Merchant | None:
        return (
            self.db.query(Merchant).filter(Merchant.finix_identity_id == finix_identity_id).first()
        )

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Merchant]:
        return (
            self.db.query(Merchant)
            .order_by(Merchant.merchant_name.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_fee_profile(self, merchant_id: UUID) -> MerchantFeeProfile | None:
        return (
            self.db.query(MerchantFeeProfile)
            .filter(MerchantFeeProfile.merchant_id == merchant_id)
            .first()
        )

    def create(self, **fields: Any) -> Merchant:
        merchant = Merchant(**fields)
        self.db.add(merchant)
        self.db.commit()
        self.db.refresh(merchant)
        return merchant

    def create_fee_profile(self, merchant_id: UUID, **fields: Any) -> MerchantFeeProfile:
        profile = MerchantFeeProfile(merchant_id=merchant_id, **fields)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def update_fee_profile(
        self, profile: MerchantFeeProfile, updates: dict[str, Any]
    ) -> MerchantFeeProfile:
        for key, value in updates.items():
            setattr(profile, key, value)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def apply_updates(self, merchant: Merchant, updates: dict[str, Any]) -> Merchant:
        """Overwrite the given fields; last write wins."""
        for key, value in updates.items():
            setattr(merchant, key, value)
        self.db.commit()
        self.db.refresh(merchant)
        return merchant
