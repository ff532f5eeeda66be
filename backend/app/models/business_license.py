from enum import Enum

from sqlalchemy import Column, DateTime, String

from app.core.database import Base
from app.models.domain_record import PayableRecordMixin


class BusinessLicenseStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    INFORMATION_REQUESTED = "information_requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    ISSUED = "issued"


class BusinessLicense(PayableRecordMixin, Base):
    __tablename__ = "business_licenses"

    business_name = Column(String(255), nullable=True)
    issued_at = Column(DateTime(timezone=True), nullable=True)
