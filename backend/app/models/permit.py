from enum import Enum

from sqlalchemy import Column, String

from app.core.database import Base
from app.models.domain_record import PayableRecordMixin


class PermitStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    INFORMATION_REQUESTED = "information_requested"
    APPROVED = "approved"
    DENIED = "denied"
    ISSUED = "issued"
    WITHDRAWN = "withdrawn"


class Permit(PayableRecordMixin, Base):
    __tablename__ = "permits"

    permit_type = Column(String(100), nullable=True)
