from enum import Enum

from sqlalchemy import Column, String

from app.core.database import Base
from app.models.domain_record import PayableRecordMixin


class TaxSubmissionStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    REJECTED = "rejected"


class TaxSubmission(PayableRecordMixin, Base):
    """A tax filing; submitting it is paying for it."""

    __tablename__ = "tax_submissions"

    tax_type = Column(String(100), nullable=True)
    tax_period = Column(String(50), nullable=True)
