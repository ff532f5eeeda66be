"""Merchant and fee profile schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MerchantCreate(BaseModel):
    merchant_name: str = Field(..., min_length=1, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    subcategory: str | None = Field(default=None, max_length=100)
    statement_descriptor: str | None = Field(default=None, max_length=50)
    finix_merchant_id: str | None = Field(default=None, max_length=255)
    finix_identity_id: str | None = Field(default=None, max_length=255)


class MerchantUpdate(BaseModel):
    merchant_name: str | None = Field(default=None, min_length=1, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    subcategory: str | None = Field(default=None, max_length=100)
    statement_descriptor: str | None = Field(default=None, max_length=50)
    finix_merchant_id: str | None = Field(default=None, max_length=255)
    finix_identity_id: str | None = Field(default=None, max_length=255)


class MerchantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_name: str
    category: str | None = None
    subcategory: str | None = None
    statement_descriptor: str | None = None
    finix_merchant_id: str | None = None
    finix_identity_id: str | None = None
    verification_status: str
    processing_status: str
    onboarding_state: str | None = None
    processing_enabled: bool
    settlement_enabled: bool
    created_at: datetime
    updated_at: datetime


class FeeProfileUpdate(BaseModel):
    """Card and bank-transfer rates. Omitted fields keep their current value."""

    basis_points: int | None = Field(default=None, ge=0, lt=10000)
    fixed_fee: int | None = Field(default=None, ge=0)
    ach_basis_points: int | None = Field(default=None, ge=0, lt=10000)
    ach_fixed_fee: int | None = Field(default=None, ge=0)
    ach_basis_points_fee_limit: int | None = Field(default=None, ge=0)
    ach_debit_return_fixed_fee: int | None = Field(default=None, ge=0)
    ach_credit_return_fixed_fee: int | None = Field(default=None, ge=0)
    dispute_fixed_fee: int | None = Field(default=None, ge=0)
    dispute_inquiry_fixed_fee: int | None = Field(default=None, ge=0)


class FeeProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    merchant_id: UUID
    basis_points: int
    fixed_fee: int
    ach_basis_points: int
    ach_fixed_fee: int
    ach_basis_points_fee_limit: int | None = None
    ach_debit_return_fixed_fee: int
    ach_credit_return_fixed_fee: int
    dispute_fixed_fee: int
    dispute_inquiry_fixed_fee: int
    updated_at: datetime
